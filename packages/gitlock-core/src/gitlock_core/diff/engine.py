"""Diff and patch over path-sorted snapshots.

The diff is a merge-style walk over both line sequences keyed by path.
Whole-line equality ends an edit region; while lines differ, the cursor
with the smaller path advances (both advance on equal paths), so a
same-path content change lands in one ``ChangeOp`` rather than a
delete/add pair. The output is deterministic but not guaranteed minimal.
"""

from __future__ import annotations

from collections.abc import Sequence

from gitlock_core.diff.models import AddOp, ChangeOp, DeleteOp, DiffScript, Op
from gitlock_core.errors import MalformedDiffError, MalformedSnapshotError
from gitlock_core.snapshot.models import Snapshot


def _region_op(
    base_start: int,
    base_end: int,
    target: Sequence[str],
    target_start: int,
    target_end: int,
) -> Op | None:
    """Op replacing base[base_start:base_end] with target[target_start:target_end]."""
    base_moved = base_end > base_start
    target_moved = target_end > target_start
    if not base_moved and target_moved:
        return AddOp(base_start, tuple(target[target_start:target_end]))
    if base_moved and not target_moved:
        return DeleteOp(base_start, base_end - base_start)
    if base_moved and target_moved:
        return ChangeOp(
            base_start, base_end - base_start, tuple(target[target_start:target_end])
        )
    return None


def compute_diff(base: Snapshot, target: Snapshot) -> DiffScript:
    """Edit script turning *base* into *target*."""
    base_lines, target_lines = base.lines, target.lines
    base_paths, target_paths = base.paths, target.paths
    ops: list[Op] = []

    base_cursor = target_cursor = 0
    # Start of the pending (unmatched) region on each side
    base_index = target_index = 0

    while base_cursor < len(base_lines) and target_cursor < len(target_lines):
        if base_lines[base_cursor] == target_lines[target_cursor]:
            op = _region_op(base_index, base_cursor, target_lines, target_index, target_cursor)
            if op is not None:
                ops.append(op)
            base_cursor += 1
            target_cursor += 1
            base_index, target_index = base_cursor, target_cursor
        elif base_paths[base_cursor] < target_paths[target_cursor]:
            base_cursor += 1
        elif base_paths[base_cursor] > target_paths[target_cursor]:
            target_cursor += 1
        else:
            base_cursor += 1
            target_cursor += 1

    op = _region_op(base_index, len(base_lines), target_lines, target_index, len(target_lines))
    if op is not None:
        ops.append(op)
    return DiffScript(tuple(ops))


def apply_diff(base: Snapshot, script: DiffScript) -> Snapshot:
    """Replay *script* over *base*.

    Raises MalformedDiffError when an op is out of range, ops are not in
    strictly ascending position order, or the result is not a valid snapshot.
    """
    lines = base.lines
    out: list[str] = []
    cursor = 0
    previous: int | None = None

    for op in script:
        if previous is not None and op.at_line <= previous:
            raise MalformedDiffError(
                f"op at {op.at_line} does not follow op at {previous}"
            )
        if op.at_line < cursor:
            raise MalformedDiffError(
                f"op at {op.at_line} overlaps base lines consumed up to {cursor}"
            )
        if op.at_line > len(lines):
            raise MalformedDiffError(
                f"op at {op.at_line} is past the end of a {len(lines)}-line base"
            )
        out.extend(lines[cursor:op.at_line])
        cursor = op.at_line

        if isinstance(op, AddOp):
            out.extend(op.lines)
        else:
            end = cursor + op.count
            if end > len(lines):
                raise MalformedDiffError(
                    f"op at {op.at_line} spans {op.count} lines past the end "
                    f"of a {len(lines)}-line base"
                )
            if isinstance(op, ChangeOp):
                out.extend(op.lines)
            cursor = end
        previous = op.at_line

    out.extend(lines[cursor:])
    try:
        return Snapshot(tuple(out))
    except MalformedSnapshotError as e:
        raise MalformedDiffError(f"diff produces an invalid snapshot: {e}") from e
