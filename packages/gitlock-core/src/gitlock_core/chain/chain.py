"""Snapshot chain: decides full-vs-diff storage and reconstructs snapshots."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from pydantic import ValidationError

from gitlock_core.chain.cache import SnapshotCache
from gitlock_core.chain.models import ChainNode
from gitlock_core.diff import apply_diff, compute_diff
from gitlock_core.errors import ChainIntegrityError, DuplicateLockError, MalformedInputError
from gitlock_core.interfaces.store import LockRecord, LockStore
from gitlock_core.snapshot import Snapshot

logger = logging.getLogger(__name__)


class SnapshotChain:
    """Chain of per-commit locks linked through primary parents.

    Each recorded commit is persisted once, either as a full snapshot (root
    commits, or when the parent cannot be materialized) or as a diff against
    its primary parent's snapshot. Nodes missing from memory are rehydrated
    from *store* on demand.
    """

    def __init__(
        self,
        store: LockStore | None = None,
        cache: SnapshotCache | None = None,
    ) -> None:
        self.store = store
        self.cache = cache if cache is not None else SnapshotCache()
        self._nodes: dict[str, ChainNode] = {}

    def has_commit(self, commit_id: str) -> bool:
        if commit_id in self._nodes:
            return True
        return self.store is not None and self.store.has_lock_record(commit_id)

    def known_commit_ids(self) -> list[str]:
        """Commits in memory followed by any further ones in the store."""
        ids = list(self._nodes)
        if self.store is not None:
            seen = set(ids)
            ids.extend(c for c in self.store.commit_ids() if c not in seen)
        return ids

    def lock_records(self) -> Iterator[LockRecord]:
        """Stored lock records in store order."""
        if self.store is None:
            return
        for commit_id in self.store.commit_ids():
            record = self._load_record(commit_id)
            if record is not None:
                yield record

    def node(self, commit_id: str) -> ChainNode:
        return self._resolve(commit_id, commit_id)

    # ------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------

    def record_commit(
        self,
        commit_id: str,
        snapshot: Snapshot,
        parent_id: str | None = None,
        child_ids: Iterable[str] | None = None,
    ) -> ChainNode:
        """Store *snapshot* for *commit_id* and return the new node.

        *child_ids* are the commits whose primary parent is this one; when
        given, the cached snapshot is released once they have all been
        recorded.
        """
        if self.has_commit(commit_id):
            raise DuplicateLockError(commit_id)

        parent_snapshot: Snapshot | None = None
        if parent_id is not None:
            try:
                parent_snapshot = self.get_full_snapshot(parent_id)
            except ChainIntegrityError as e:
                logger.warning(
                    "parent %s of %s is unavailable (%s); storing full snapshot",
                    parent_id,
                    commit_id,
                    e,
                )

        if parent_snapshot is None:
            node = ChainNode(commit_id, parent_id, snapshot.hash(), full=snapshot)
        else:
            node = ChainNode(
                commit_id,
                parent_id,
                snapshot.hash(),
                diff=compute_diff(parent_snapshot, snapshot),
            )
        logger.debug(
            "recorded %s as %s (%d entries)",
            commit_id,
            "full" if node.is_full else f"diff of {len(node.diff)} ops",
            len(snapshot),
        )

        if self.store is not None:
            self.store.persist_lock_record(node.to_record())
        self._nodes[commit_id] = node

        if child_ids is not None:
            self.cache.expect_children(commit_id, child_ids)
        if not node.is_full:
            self.cache.put(commit_id, snapshot)
        self.mark_processed(commit_id, parent_id)
        return node

    def expect_children(self, commit_id: str, child_ids: Iterable[str]) -> None:
        """Register the primary children of an already-recorded commit."""
        self.cache.expect_children(commit_id, child_ids)

    def mark_processed(self, commit_id: str, parent_id: str | None) -> None:
        """Tell the cache *commit_id* no longer needs its parent's snapshot."""
        if parent_id is not None:
            self.cache.child_processed(parent_id, commit_id)

    def drop_node(self, commit_id: str) -> bool:
        """Forget a node's in-memory state; it can be rehydrated from the store."""
        self.cache.evict(commit_id)
        return self._nodes.pop(commit_id, None) is not None

    # ------------------------------------------------------------------
    # Reconstruct
    # ------------------------------------------------------------------

    def get_full_snapshot(self, commit_id: str) -> Snapshot:
        """Materialize *commit_id*'s snapshot.

        Walks parent links back to the nearest cached or full snapshot, then
        replays the diffs forward, caching each intermediate result.
        """
        pending: list[ChainNode] = []
        visited: set[str] = set()
        current = commit_id
        requested_by = commit_id

        while True:
            cached = self.cache.get(current)
            if cached is not None:
                snapshot = cached
                break
            node = self._resolve(current, requested_by)
            if node.full is not None:
                snapshot = node.full
                break
            pending.append(node)
            visited.add(current)
            requested_by, current = current, node.parent_id
            if current in visited:
                raise ChainIntegrityError(
                    requested_by, current, f"parent links loop back to {current}"
                )

        for node in reversed(pending):
            snapshot = apply_diff(snapshot, node.diff)
            self.cache.put(node.commit_id, snapshot)
        return snapshot

    def _resolve(self, commit_id: str, requested_by: str) -> ChainNode:
        node = self._nodes.get(commit_id)
        if node is not None:
            return node

        record = self._load_record(commit_id)
        if record is None:
            if requested_by == commit_id:
                raise ChainIntegrityError(commit_id, commit_id, f"no lock record for {commit_id}")
            raise ChainIntegrityError(requested_by, commit_id)
        if record.commit_id != commit_id:
            raise ChainIntegrityError(
                requested_by, commit_id, f"record for {commit_id} names {record.commit_id}"
            )
        if record.kind == "diff" and record.parent_id is None:
            raise ChainIntegrityError(commit_id, commit_id, "diff record has no parent")

        try:
            node = ChainNode.from_record(record)
        except MalformedInputError:
            raise
        except ValueError as e:
            raise MalformedInputError(f"lock record for {commit_id} is invalid: {e}") from e
        self._nodes[commit_id] = node
        logger.debug("rehydrated %s from store", commit_id)
        return node

    def _load_record(self, commit_id: str) -> LockRecord | None:
        if self.store is None:
            return None
        try:
            return self.store.load_lock_record(commit_id)
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
            raise MalformedInputError(
                f"stored lock for {commit_id} is unreadable: invalid {fields}"
            ) from e
        except ValueError as e:
            raise MalformedInputError(f"stored lock for {commit_id} is unreadable: {e}") from e
