"""Lock storage interface and the persisted record model."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gitlock_core.hashing import is_valid_hash


class LockRecord(BaseModel):
    """The durable form of one commit's lock.

    ``content`` is the snapshot text when ``kind`` is ``"full"`` and the
    stored diff text (``no-diff`` for an empty script) when it is ``"diff"``.
    The full-vs-diff decision is made once and never rewritten.
    """

    model_config = ConfigDict(frozen=True)

    commit_id: str = Field(min_length=1)
    parent_id: str | None = None
    kind: Literal["full", "diff"]
    content: str
    snapshot_hash: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("commit_id")
    @classmethod
    def validate_commit_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("commit_id cannot be empty or whitespace")
        return v

    @field_validator("snapshot_hash")
    @classmethod
    def validate_snapshot_hash(cls, v: str) -> str:
        if not is_valid_hash(v):
            raise ValueError(f"snapshot_hash must be sha256-<64 hex>, got {v!r}")
        return v


@runtime_checkable
class LockStore(Protocol):
    """Durable write-once storage of lock records."""

    def persist_lock_record(self, record: LockRecord) -> None: ...

    def load_lock_record(self, commit_id: str) -> LockRecord | None: ...

    def has_lock_record(self, commit_id: str) -> bool: ...

    def commit_ids(self) -> list[str]: ...
