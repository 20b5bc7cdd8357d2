"""In-memory chain node and its conversion to and from lock records."""

from __future__ import annotations

from dataclasses import dataclass

from gitlock_core.diff import DiffScript, decode_stored_diff, encode_stored_diff
from gitlock_core.interfaces.store import LockRecord
from gitlock_core.snapshot import Snapshot


@dataclass(frozen=True)
class ChainNode:
    """One commit's stored lock: a full snapshot or a diff against its primary parent."""

    commit_id: str
    parent_id: str | None
    snapshot_hash: str
    full: Snapshot | None = None
    diff: DiffScript | None = None

    def __post_init__(self) -> None:
        if (self.full is None) == (self.diff is None):
            raise ValueError("exactly one of full or diff must be set")
        if self.diff is not None and self.parent_id is None:
            raise ValueError(f"diff node {self.commit_id} has no parent")

    @property
    def is_full(self) -> bool:
        return self.full is not None

    def to_record(self) -> LockRecord:
        if self.full is not None:
            return LockRecord(
                commit_id=self.commit_id,
                parent_id=self.parent_id,
                kind="full",
                content=self.full.to_text(),
                snapshot_hash=self.snapshot_hash,
            )
        return LockRecord(
            commit_id=self.commit_id,
            parent_id=self.parent_id,
            kind="diff",
            content=encode_stored_diff(self.diff),
            snapshot_hash=self.snapshot_hash,
        )

    @classmethod
    def from_record(cls, record: LockRecord) -> ChainNode:
        """Decode a record. Raises MalformedSnapshotError/MalformedDiffError."""
        if record.kind == "full":
            return cls(
                commit_id=record.commit_id,
                parent_id=record.parent_id,
                snapshot_hash=record.snapshot_hash,
                full=Snapshot.from_text(record.content),
            )
        return cls(
            commit_id=record.commit_id,
            parent_id=record.parent_id,
            snapshot_hash=record.snapshot_hash,
            diff=decode_stored_diff(record.content),
        )
