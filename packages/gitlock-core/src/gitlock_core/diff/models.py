"""Value types for diff scripts."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from gitlock_core.errors import MalformedDiffError


@dataclass(frozen=True)
class AddOp:
    """Insert *lines* before base line *at_line*."""

    at_line: int
    lines: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", tuple(self.lines))
        if self.at_line < 0:
            raise MalformedDiffError(f"add position must be >= 0, got {self.at_line}")
        if not self.lines:
            raise MalformedDiffError(f"add at {self.at_line} carries no lines")


@dataclass(frozen=True)
class DeleteOp:
    """Remove *count* base lines starting at *at_line*."""

    at_line: int
    count: int

    def __post_init__(self) -> None:
        if self.at_line < 0:
            raise MalformedDiffError(f"delete position must be >= 0, got {self.at_line}")
        if self.count < 1:
            raise MalformedDiffError(f"delete at {self.at_line} must remove at least one line")


@dataclass(frozen=True)
class ChangeOp:
    """Replace *count* base lines starting at *at_line* with *lines*."""

    at_line: int
    count: int
    lines: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", tuple(self.lines))
        if self.at_line < 0:
            raise MalformedDiffError(f"change position must be >= 0, got {self.at_line}")
        if self.count < 1:
            raise MalformedDiffError(f"change at {self.at_line} must replace at least one line")
        if not self.lines:
            raise MalformedDiffError(f"change at {self.at_line} carries no lines")


Op = AddOp | DeleteOp | ChangeOp


@dataclass(frozen=True)
class DiffScript:
    """Ordered edit ops; positions refer to the base before any edit.

    An empty script means "no changes".
    """

    ops: tuple[Op, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "ops", tuple(self.ops))

    @classmethod
    def of(cls, ops: Iterable[Op]) -> DiffScript:
        return cls(tuple(ops))

    def __iter__(self) -> Iterator[Op]:
        return iter(self.ops)

    def __len__(self) -> int:
        return len(self.ops)

    @property
    def is_empty(self) -> bool:
        return not self.ops
