"""Data models for commit tree snapshots."""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, field_validator

from gitlock_core.errors import MalformedSnapshotError
from gitlock_core.hashing import DIRECTORY_HASH, compute_hash, is_valid_hash

_MODE_RE = re.compile(r"[0-7]{6}")

# Line and paragraph separators would break the line-oriented encoding
_FORBIDDEN_PATH_CHARS = {"\u2028", "\u2029"}

# "d N C" and "c N C" would be read back as diff op headers
_OP_HEADER_RE = re.compile(r"[cd] (0|[1-9][0-9]*) (0|[1-9][0-9]*)")


class FileEntry(BaseModel):
    """One (mode, content hash, path) triple of a commit's flattened tree."""

    model_config = ConfigDict(frozen=True)

    mode: str
    hash: str
    path: str

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode(cls, v: object) -> object:
        # git writes tree modes as "40000"
        if isinstance(v, str) and len(v) == 5:
            return "0" + v
        return v

    @field_validator("mode")
    @classmethod
    def validate_mode(cls, v: str) -> str:
        if not _MODE_RE.fullmatch(v):
            raise ValueError(f"mode must be 6 octal digits, got {v!r}")
        return v

    @field_validator("hash")
    @classmethod
    def validate_hash(cls, v: str) -> str:
        if not is_valid_hash(v):
            raise ValueError(f"hash must be sha256-<64 hex>, got {v!r}")
        return v

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v:
            raise ValueError("path cannot be empty")
        for ch in v:
            if ch in _FORBIDDEN_PATH_CHARS or unicodedata.category(ch) == "Cc":
                raise ValueError(f"path contains forbidden character {ch!r}: {v!r}")
        return v

    @property
    def is_directory(self) -> bool:
        return self.hash == DIRECTORY_HASH

    def to_line(self) -> str:
        """Serialize as ``<mode> <hash> <path>`` (no trailing newline)."""
        return f"{self.mode} {self.hash} {self.path}"

    @classmethod
    def from_line(cls, line: str) -> FileEntry:
        parts = line.split(" ", 2)
        if len(parts) != 3:
            raise MalformedSnapshotError(f"expected '<mode> <hash> <path>', got {line!r}")
        return cls(mode=parts[0], hash=parts[1], path=parts[2])


def _path_of(line: str, line_number: int) -> str:
    parts = line.split(" ", 2)
    if len(parts) != 3 or not all(parts):
        raise MalformedSnapshotError(
            f"expected '<mode> <hash> <path>', got {line!r}", line_number
        )
    if _OP_HEADER_RE.fullmatch(line):
        raise MalformedSnapshotError(f"entry {line!r} reads as a diff op header", line_number)
    return parts[2]


@dataclass(frozen=True)
class Snapshot:
    """An ordered, path-sorted listing of a commit's tree.

    Stored as opaque ``<mode> <hash> <path>`` lines; only the path field is
    ever interpreted. Construction enforces strictly ascending paths, which
    also rules out duplicates.
    """

    lines: tuple[str, ...] = ()
    paths: tuple[str, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        lines = tuple(self.lines)
        paths: list[str] = []
        for number, line in enumerate(lines, start=1):
            if "\n" in line:
                raise MalformedSnapshotError("embedded newline in entry", number)
            path = _path_of(line, number)
            if paths and path <= paths[-1]:
                if path == paths[-1]:
                    raise MalformedSnapshotError(f"duplicate path {path!r}", number)
                raise MalformedSnapshotError(
                    f"path {path!r} sorts before {paths[-1]!r}", number
                )
            paths.append(path)
        object.__setattr__(self, "lines", lines)
        object.__setattr__(self, "paths", tuple(paths))

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self) -> Iterator[str]:
        return iter(self.lines)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_entries(cls, entries: Iterable[FileEntry]) -> Snapshot:
        """Build from entries already sorted by path. Entries are not re-sorted."""
        return cls(tuple(entry.to_line() for entry in entries))

    @classmethod
    def from_text(cls, text: str) -> Snapshot:
        """Parse the serialized form: one entry per line, each ending in ``\\n``."""
        if text == "":
            return cls()
        if not text.endswith("\n"):
            raise MalformedSnapshotError("snapshot text must end with a newline")
        return cls(tuple(text[:-1].split("\n")))

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_text(self) -> str:
        """Every line, the last included, is terminated by ``\\n``."""
        return "".join(line + "\n" for line in self.lines)

    def entries(self) -> list[FileEntry]:
        """Parse lines into validated FileEntry models."""
        return [FileEntry.from_line(line) for line in self.lines]

    def hash(self) -> str:
        return compute_hash(self.to_text())
