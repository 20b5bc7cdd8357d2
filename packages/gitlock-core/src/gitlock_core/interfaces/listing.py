"""Commit graph and tree listing interfaces."""

from __future__ import annotations

import re
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gitlock_core.snapshot.models import FileEntry

# SHA-1 or SHA-256 object ids
_OBJECT_ID_RE = re.compile(r"[0-9a-f]{40}|[0-9a-f]{64}")


def _check_object_id(v: str) -> str:
    if not _OBJECT_ID_RE.fullmatch(v):
        raise ValueError(f"not a git object id: {v!r}")
    return v


class CommitInfo(BaseModel):
    """A commit and its ordered parents; the first parent is the primary one."""

    model_config = ConfigDict(frozen=True)

    commit_id: str
    parent_ids: list[str] = Field(default_factory=list)

    @field_validator("commit_id")
    @classmethod
    def validate_commit_id(cls, v: str) -> str:
        return _check_object_id(v)

    @field_validator("parent_ids")
    @classmethod
    def validate_parent_ids(cls, v: list[str]) -> list[str]:
        return [_check_object_id(p) for p in v]

    @property
    def primary_parent(self) -> str | None:
        return self.parent_ids[0] if self.parent_ids else None


@runtime_checkable
class TreeListingProvider(Protocol):
    """Supplies a commit's flattened tree.

    Entries must already be sorted by path, with directories carrying the
    all-zero sentinel hash and submodules left out.
    """

    def get_commit_tree_listing(self, commit_id: str) -> list[FileEntry]: ...
