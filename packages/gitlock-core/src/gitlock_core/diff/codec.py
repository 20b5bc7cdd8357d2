"""Text grammar for stored diff scripts.

Each op is a header line followed, for adds and changes, by its entry
lines::

    a <at_line>
    <mode> <hash> <path>
    d <at_line> <count>
    c <at_line> <count>
    <mode> <hash> <path>

Numbers are canonical decimals. Every line ends with ``\\n``; the empty
script encodes to ``""``. When a diff is embedded in a lock record an empty
script is written as the single line ``no-diff`` instead.
"""

from __future__ import annotations

import re

from gitlock_core.diff.engine import apply_diff, compute_diff
from gitlock_core.diff.models import AddOp, ChangeOp, DeleteOp, DiffScript, Op
from gitlock_core.errors import MalformedDiffError
from gitlock_core.snapshot.models import Snapshot

NO_DIFF = "no-diff"

_NUM = r"(0|[1-9][0-9]*)"
_ADD_RE = re.compile(rf"a {_NUM}")
_DELETE_RE = re.compile(rf"d {_NUM} {_NUM}")
_CHANGE_RE = re.compile(rf"c {_NUM} {_NUM}")


def _is_header(line: str) -> bool:
    return any(rx.fullmatch(line) for rx in (_ADD_RE, _DELETE_RE, _CHANGE_RE))


def _content_lines(op_lines: tuple[str, ...]) -> str:
    out = []
    for line in op_lines:
        if "\n" in line or _is_header(line):
            raise MalformedDiffError(f"entry line cannot be encoded: {line!r}")
        out.append(line + "\n")
    return "".join(out)


def encode_diff(script: DiffScript) -> str:
    """Serialize *script*; the empty script becomes ``""``."""
    parts: list[str] = []
    for op in script:
        if isinstance(op, AddOp):
            parts.append(f"a {op.at_line}\n")
            parts.append(_content_lines(op.lines))
        elif isinstance(op, DeleteOp):
            parts.append(f"d {op.at_line} {op.count}\n")
        else:
            parts.append(f"c {op.at_line} {op.count}\n")
            parts.append(_content_lines(op.lines))
    return "".join(parts)


def decode_diff(text: str) -> DiffScript:
    """Parse the output of :func:`encode_diff`."""
    if text == "":
        return DiffScript()
    if not text.endswith("\n"):
        raise MalformedDiffError("diff text must end with a newline")

    ops: list[Op] = []
    # (kind, at_line, count, header line number) of the add/change being read
    pending: tuple[str, int, int, int] | None = None
    pending_lines: list[str] = []

    def flush() -> None:
        nonlocal pending
        if pending is None:
            return
        kind, at_line, count, number = pending
        try:
            if kind == "a":
                ops.append(AddOp(at_line, tuple(pending_lines)))
            else:
                ops.append(ChangeOp(at_line, count, tuple(pending_lines)))
        except MalformedDiffError as e:
            raise MalformedDiffError(str(e), number) from e
        pending = None
        pending_lines.clear()

    for number, line in enumerate(text[:-1].split("\n"), start=1):
        if m := _ADD_RE.fullmatch(line):
            flush()
            pending = ("a", int(m.group(1)), 0, number)
        elif m := _CHANGE_RE.fullmatch(line):
            flush()
            pending = ("c", int(m.group(1)), int(m.group(2)), number)
        elif m := _DELETE_RE.fullmatch(line):
            flush()
            try:
                ops.append(DeleteOp(int(m.group(1)), int(m.group(2))))
            except MalformedDiffError as e:
                raise MalformedDiffError(str(e), number) from e
        else:
            if pending is None:
                raise MalformedDiffError(f"entry line outside an add/change op: {line!r}", number)
            parts = line.split(" ", 2)
            if len(parts) != 3 or not all(parts):
                raise MalformedDiffError(f"expected '<mode> <hash> <path>', got {line!r}", number)
            pending_lines.append(line)
    flush()
    return DiffScript(tuple(ops))


def encode_stored_diff(script: DiffScript) -> str:
    """Like :func:`encode_diff` but an empty script becomes the ``no-diff`` line."""
    if script.is_empty:
        return NO_DIFF + "\n"
    return encode_diff(script)


def decode_stored_diff(text: str) -> DiffScript:
    """Inverse of :func:`encode_stored_diff`. A bare ``""`` is rejected."""
    if text == NO_DIFF + "\n":
        return DiffScript()
    if text == "":
        raise MalformedDiffError("stored diff is empty; expected the 'no-diff' marker")
    return decode_diff(text)


def diff_text(base: str, target: str) -> str:
    """Diff two serialized snapshots and return the serialized script."""
    return encode_diff(compute_diff(Snapshot.from_text(base), Snapshot.from_text(target)))


def apply_diff_text(base: str, diff: str) -> str:
    """Apply a serialized script to a serialized snapshot."""
    return apply_diff(Snapshot.from_text(base), decode_diff(diff)).to_text()
