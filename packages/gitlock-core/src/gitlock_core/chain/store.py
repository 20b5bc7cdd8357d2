"""In-process LockStore, used when no durable store is configured."""

from __future__ import annotations

from gitlock_core.errors import DuplicateLockError
from gitlock_core.interfaces.store import LockRecord


class InMemoryLockStore:
    """LockStore backed by a dict. Records are lost when the process exits."""

    def __init__(self) -> None:
        self._records: dict[str, LockRecord] = {}

    def persist_lock_record(self, record: LockRecord) -> None:
        if record.commit_id in self._records:
            raise DuplicateLockError(record.commit_id)
        self._records[record.commit_id] = record

    def load_lock_record(self, commit_id: str) -> LockRecord | None:
        return self._records.get(commit_id)

    def has_lock_record(self, commit_id: str) -> bool:
        return commit_id in self._records

    def commit_ids(self) -> list[str]:
        return list(self._records)

    def delete_lock_record(self, commit_id: str) -> bool:
        """Remove a record. Only meant for maintenance and tests."""
        return self._records.pop(commit_id, None) is not None
