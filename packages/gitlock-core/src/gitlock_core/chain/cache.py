"""Explicit cache of materialized snapshots with child-driven eviction."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from gitlock_core.snapshot import Snapshot

logger = logging.getLogger(__name__)


class SnapshotCache:
    """Full snapshots by commit id.

    A commit's snapshot is only needed while some child still has to be
    diffed against it. Callers register the expected children with
    :meth:`expect_children`; once the last one reports in through
    :meth:`child_processed` the entry is dropped and the commit becomes
    *settled*, after which :meth:`put` refuses to cache it again.
    Commits never registered are kept until :meth:`evict` is called.

    Not thread-safe: confine an instance to the worker that owns the chain.
    """

    def __init__(self, evict_processed: bool = True) -> None:
        self.evict_processed = evict_processed
        self._snapshots: dict[str, Snapshot] = {}
        self._pending: dict[str, set[str]] = {}
        self.evictions = 0

    def __contains__(self, commit_id: str) -> bool:
        return commit_id in self._snapshots

    def __len__(self) -> int:
        return len(self._snapshots)

    def cached_ids(self) -> list[str]:
        return list(self._snapshots)

    def get(self, commit_id: str) -> Snapshot | None:
        return self._snapshots.get(commit_id)

    def put(self, commit_id: str, snapshot: Snapshot) -> bool:
        """Cache *snapshot* unless the commit is settled. Returns True if stored."""
        if self.is_settled(commit_id):
            return False
        self._snapshots[commit_id] = snapshot
        return True

    def evict(self, commit_id: str) -> bool:
        if self._snapshots.pop(commit_id, None) is None:
            return False
        self.evictions += 1
        logger.debug("evicted snapshot for %s", commit_id)
        return True

    def evict_except(self, keep: Iterable[str]) -> int:
        """Evict every cached snapshot not named in *keep*. Returns the count."""
        keep = set(keep)
        stale = [commit_id for commit_id in self._snapshots if commit_id not in keep]
        return sum(self.evict(commit_id) for commit_id in stale)

    # ------------------------------------------------------------------
    # Child tracking
    # ------------------------------------------------------------------

    def expect_children(self, commit_id: str, child_ids: Iterable[str]) -> None:
        """Record which children will diff against *commit_id*."""
        self._pending[commit_id] = set(child_ids)
        if self.is_settled(commit_id):
            self.evict(commit_id)

    def pending_children(self, commit_id: str) -> set[str] | None:
        """Children still outstanding, or None if none were registered."""
        pending = self._pending.get(commit_id)
        return set(pending) if pending is not None else None

    def is_settled(self, commit_id: str) -> bool:
        if not self.evict_processed:
            return False
        pending = self._pending.get(commit_id)
        return pending is not None and not pending

    def child_processed(self, parent_id: str, child_id: str) -> bool:
        """Mark *child_id* done. Returns True if the parent was evicted."""
        pending = self._pending.get(parent_id)
        if pending is None:
            return False
        pending.discard(child_id)
        if self.is_settled(parent_id):
            return self.evict(parent_id)
        return False
