"""Exception taxonomy for the lock chain core."""

from __future__ import annotations


class GitlockError(Exception):
    """Base class for all gitlock errors."""


class MalformedInputError(GitlockError, ValueError):
    """A snapshot or diff script violates its structural invariants."""

    def __init__(self, message: str, line_number: int | None = None) -> None:
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class MalformedSnapshotError(MalformedInputError):
    """Snapshot text or entries are unsorted, duplicated, or unparseable."""


class MalformedDiffError(MalformedInputError):
    """Diff script has bad grammar, out-of-range bounds, or unordered ops."""


class ChainIntegrityError(GitlockError):
    """A reconstruction walk reached a parent that cannot be resolved."""

    def __init__(self, commit_id: str, missing_id: str, reason: str = "") -> None:
        self.commit_id = commit_id
        self.missing_id = missing_id
        detail = reason or f"parent lock {missing_id} not found"
        super().__init__(f"broken lock chain at {commit_id}: {detail}")


class DuplicateLockError(GitlockError):
    """A lock record already exists for the commit."""

    def __init__(self, commit_id: str) -> None:
        self.commit_id = commit_id
        super().__init__(f"lock record already exists for {commit_id}")
