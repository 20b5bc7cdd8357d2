"""Tests for SnapshotChain, SnapshotCache and InMemoryLockStore."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from gitlock_core.chain import ChainNode, InMemoryLockStore, SnapshotCache, SnapshotChain
from gitlock_core.diff import DiffScript, compute_diff, encode_stored_diff
from gitlock_core.errors import (
    ChainIntegrityError,
    DuplicateLockError,
    MalformedDiffError,
    MalformedInputError,
)
from gitlock_core.hashing import compute_hash
from gitlock_core.interfaces import LockRecord, LockStore
from gitlock_core.snapshot import Snapshot


def _cid(n: int) -> str:
    return f"{n:040x}"


def _version(k: int) -> Snapshot:
    """Deterministic snapshot for the k-th commit of a synthetic history."""
    files = {f"file{i:02d}": f"h{(i * k) % 5}" for i in range(8)}
    if k % 3 == 1:
        files[f"added{k}"] = "h9"
    if k % 4 == 2:
        files.pop("file03")
    return Snapshot(tuple(f"100644 {files[p]} {p}" for p in sorted(files)))


def _record_linear(chain: SnapshotChain, count: int) -> list[str]:
    ids = [_cid(k + 1) for k in range(count)]
    for k, commit_id in enumerate(ids):
        chain.record_commit(commit_id, _version(k), parent_id=ids[k - 1] if k else None)
    return ids


# ---------------------------------------------------------------------------
# Recording
# ---------------------------------------------------------------------------


class TestRecord:
    def test_root_is_stored_full(self, chain, memory_store, sample_snapshot):
        node = chain.record_commit(_cid(1), sample_snapshot)
        assert node.is_full

        record = memory_store.load_lock_record(_cid(1))
        assert record.kind == "full"
        assert record.parent_id is None
        assert record.content == sample_snapshot.to_text()
        assert record.snapshot_hash == sample_snapshot.hash()

    def test_child_is_stored_as_diff(self, chain, memory_store):
        chain.record_commit(_cid(1), _version(0))
        node = chain.record_commit(_cid(2), _version(1), parent_id=_cid(1))
        assert not node.is_full

        record = memory_store.load_lock_record(_cid(2))
        assert record.kind == "diff"
        assert record.parent_id == _cid(1)
        assert record.content == encode_stored_diff(compute_diff(_version(0), _version(1)))

    def test_unchanged_child_stores_no_diff(self, chain, memory_store, sample_snapshot):
        chain.record_commit(_cid(1), sample_snapshot)
        node = chain.record_commit(_cid(2), sample_snapshot, parent_id=_cid(1))

        assert node.diff == DiffScript()
        assert memory_store.load_lock_record(_cid(2)).content == "no-diff\n"
        assert chain.get_full_snapshot(_cid(2)) == sample_snapshot

    def test_duplicate_commit_rejected(self, chain, memory_store, sample_snapshot):
        chain.record_commit(_cid(1), sample_snapshot)
        with pytest.raises(DuplicateLockError) as excinfo:
            chain.record_commit(_cid(1), sample_snapshot)
        assert excinfo.value.commit_id == _cid(1)
        assert memory_store.commit_ids() == [_cid(1)]

    def test_duplicate_detected_through_store(self, chain, memory_store, sample_snapshot):
        chain.record_commit(_cid(1), sample_snapshot)
        fresh = SnapshotChain(store=memory_store)
        with pytest.raises(DuplicateLockError):
            fresh.record_commit(_cid(1), sample_snapshot)

    def test_unresolvable_parent_falls_back_to_full(self, chain, memory_store, caplog, sample_snapshot):
        caplog.set_level(logging.WARNING, logger="gitlock_core.chain.chain")
        node = chain.record_commit(_cid(2), sample_snapshot, parent_id=_cid(1))

        assert node.is_full
        assert memory_store.load_lock_record(_cid(2)).parent_id == _cid(1)
        assert "storing full snapshot" in caplog.text

    def test_works_without_store(self, sample_snapshot):
        chain = SnapshotChain()
        chain.record_commit(_cid(1), sample_snapshot)
        chain.record_commit(_cid(2), _version(3), parent_id=_cid(1))
        assert chain.get_full_snapshot(_cid(2)) == _version(3)
        assert chain.known_commit_ids() == [_cid(1), _cid(2)]


# ---------------------------------------------------------------------------
# Reconstruction
# ---------------------------------------------------------------------------


class TestReconstruct:
    def test_linear_chain_only_root_is_full(self, chain, memory_store):
        ids = _record_linear(chain, 20)
        kinds = [memory_store.load_lock_record(c).kind for c in ids]
        assert kinds == ["full"] + ["diff"] * 19

    def test_every_commit_reconstructs(self, chain):
        ids = _record_linear(chain, 20)
        for k, commit_id in enumerate(ids):
            assert chain.get_full_snapshot(commit_id) == _version(k)

    def test_reconstruct_from_store_alone(self, chain, memory_store):
        ids = _record_linear(chain, 20)
        fresh = SnapshotChain(store=memory_store)

        for k in reversed(range(20)):
            assert fresh.get_full_snapshot(ids[k]) == _version(k)
        # Nothing registered children, so intermediates stay cached
        assert ids[10] in fresh.cache

    def test_long_history_does_not_recurse(self, memory_store):
        chain = SnapshotChain(store=memory_store)
        ids = [_cid(k + 1) for k in range(2500)]
        for k, commit_id in enumerate(ids):
            snap = Snapshot((f"100644 h{k} counter", "100644 h0 readme"))
            chain.record_commit(commit_id, snap, parent_id=ids[k - 1] if k else None)

        fresh = SnapshotChain(store=memory_store)
        assert fresh.get_full_snapshot(ids[-1]).lines[0] == "100644 h2499 counter"

    def test_unknown_commit(self, chain):
        with pytest.raises(ChainIntegrityError, match="no lock record") as excinfo:
            chain.get_full_snapshot(_cid(99))
        assert excinfo.value.missing_id == _cid(99)

    def test_missing_parent_record(self, chain, memory_store):
        ids = _record_linear(chain, 3)
        memory_store.delete_lock_record(ids[1])
        fresh = SnapshotChain(store=memory_store)

        with pytest.raises(ChainIntegrityError) as excinfo:
            fresh.get_full_snapshot(ids[2])
        assert excinfo.value.commit_id == ids[2]
        assert excinfo.value.missing_id == ids[1]
        assert "parent lock" in str(excinfo.value)

    def test_parent_loop(self, memory_store):
        digest = compute_hash("x")
        memory_store.persist_lock_record(
            LockRecord(commit_id="a", parent_id="b", kind="diff", content="no-diff\n", snapshot_hash=digest)
        )
        memory_store.persist_lock_record(
            LockRecord(commit_id="b", parent_id="a", kind="diff", content="no-diff\n", snapshot_hash=digest)
        )
        with pytest.raises(ChainIntegrityError, match="loop"):
            SnapshotChain(store=memory_store).get_full_snapshot("a")

    def test_diff_record_without_parent(self, memory_store):
        memory_store.persist_lock_record(
            LockRecord(commit_id="a", kind="diff", content="no-diff\n", snapshot_hash=compute_hash("x"))
        )
        with pytest.raises(ChainIntegrityError, match="no parent"):
            SnapshotChain(store=memory_store).get_full_snapshot("a")

    def test_corrupt_diff_record(self, chain, memory_store, sample_snapshot):
        chain.record_commit(_cid(1), sample_snapshot)
        memory_store.persist_lock_record(
            LockRecord(
                commit_id=_cid(2),
                parent_id=_cid(1),
                kind="diff",
                content="garbage\n",
                snapshot_hash=sample_snapshot.hash(),
            )
        )
        with pytest.raises(MalformedDiffError):
            SnapshotChain(store=memory_store).get_full_snapshot(_cid(2))

    def test_unreadable_store_row_is_malformed(self, sample_snapshot):
        class BrokenStore(InMemoryLockStore):
            def load_lock_record(self, commit_id):
                LockRecord(commit_id=commit_id, kind="full", content="", snapshot_hash="bad")

        chain = SnapshotChain(store=BrokenStore())
        with pytest.raises(MalformedInputError, match="unreadable") as excinfo:
            chain.get_full_snapshot("a")
        assert isinstance(excinfo.value.__cause__, ValidationError)

    def test_node_round_trips_through_record(self, chain):
        ids = _record_linear(chain, 2)
        node = chain.node(ids[1])
        assert ChainNode.from_record(node.to_record()) == node


# ---------------------------------------------------------------------------
# SnapshotCache
# ---------------------------------------------------------------------------


class TestSnapshotCache:
    def test_unregistered_entries_are_kept(self, sample_snapshot):
        cache = SnapshotCache()
        assert cache.put("a", sample_snapshot)
        cache.child_processed("a", "b")
        assert cache.get("a") == sample_snapshot
        assert "a" in cache

    def test_evicts_after_last_child(self, sample_snapshot):
        cache = SnapshotCache()
        cache.put("a", sample_snapshot)
        cache.expect_children("a", ["b", "c"])

        assert not cache.child_processed("a", "b")
        assert cache.pending_children("a") == {"c"}
        assert "a" in cache

        assert cache.child_processed("a", "c")
        assert "a" not in cache
        assert cache.is_settled("a")
        assert cache.evictions == 1

    def test_settled_commit_is_not_recached(self, sample_snapshot):
        cache = SnapshotCache()
        cache.expect_children("a", ["b"])
        cache.child_processed("a", "b")
        assert not cache.put("a", sample_snapshot)
        assert len(cache) == 0

    def test_no_children_settles_immediately(self, sample_snapshot):
        cache = SnapshotCache()
        cache.put("a", sample_snapshot)
        cache.expect_children("a", [])
        assert "a" not in cache
        assert cache.is_settled("a")

    def test_eviction_disabled(self, sample_snapshot):
        cache = SnapshotCache(evict_processed=False)
        cache.put("a", sample_snapshot)
        cache.expect_children("a", [])
        cache.child_processed("a", "b")
        assert "a" in cache
        assert not cache.is_settled("a")

    def test_pending_children_is_a_copy(self):
        cache = SnapshotCache()
        assert cache.pending_children("a") is None
        cache.expect_children("a", ["b"])
        cache.pending_children("a").clear()
        assert cache.pending_children("a") == {"b"}

    def test_explicit_evict(self, sample_snapshot):
        cache = SnapshotCache()
        cache.put("a", sample_snapshot)
        assert cache.evict("a")
        assert not cache.evict("a")

    def test_evict_except(self, sample_snapshot):
        cache = SnapshotCache()
        for commit_id in ("a", "b", "c"):
            cache.put(commit_id, sample_snapshot)
        assert cache.evict_except(["b", "z"]) == 2
        assert cache.cached_ids() == ["b"]
        assert cache.evictions == 2


# ---------------------------------------------------------------------------
# Eviction through the chain
# ---------------------------------------------------------------------------


class TestChainEviction:
    def test_snapshot_released_once_children_recorded(self, chain):
        c1, c2, c3 = _cid(1), _cid(2), _cid(3)
        chain.record_commit(c1, _version(0), child_ids=[c2])
        chain.record_commit(c2, _version(1), parent_id=c1, child_ids=[c3])
        assert c2 in chain.cache

        chain.record_commit(c3, _version(2), parent_id=c2, child_ids=[])
        assert c2 not in chain.cache
        assert c3 not in chain.cache
        assert len(chain.cache) == 0

        assert chain.get_full_snapshot(c3) == _version(2)
        assert len(chain.cache) == 0

    def test_waits_for_every_child(self, chain):
        c1, c2, c3, c4 = _cid(1), _cid(2), _cid(3), _cid(4)
        chain.record_commit(c1, _version(0), child_ids=[c2])
        chain.record_commit(c2, _version(1), parent_id=c1, child_ids=[c3, c4])
        chain.record_commit(c3, _version(2), parent_id=c2, child_ids=[])
        assert c2 in chain.cache

        chain.record_commit(c4, _version(3), parent_id=c2, child_ids=[])
        assert c2 not in chain.cache
        assert chain.get_full_snapshot(c4) == _version(3)

    def test_eviction_disabled_keeps_everything(self, memory_store):
        chain = SnapshotChain(store=memory_store, cache=SnapshotCache(evict_processed=False))
        c1, c2, c3 = _cid(1), _cid(2), _cid(3)
        chain.record_commit(c1, _version(0), child_ids=[c2])
        chain.record_commit(c2, _version(1), parent_id=c1, child_ids=[c3])
        chain.record_commit(c3, _version(2), parent_id=c2, child_ids=[])
        assert c2 in chain.cache
        assert c3 in chain.cache

    def test_drop_node_rehydrates_from_store(self, chain, caplog):
        ids = _record_linear(chain, 3)
        assert chain.drop_node(ids[1])
        assert not chain.drop_node(ids[1])
        assert chain.has_commit(ids[1])

        caplog.set_level(logging.DEBUG, logger="gitlock_core.chain.chain")
        chain.cache.evict(ids[2])
        assert chain.get_full_snapshot(ids[2]) == _version(2)
        assert f"rehydrated {ids[1]}" in caplog.text


# ---------------------------------------------------------------------------
# InMemoryLockStore
# ---------------------------------------------------------------------------


class TestInMemoryLockStore:
    def test_satisfies_lock_store(self, memory_store):
        assert isinstance(memory_store, LockStore)

    def test_write_once(self, memory_store):
        record = LockRecord(commit_id="a", kind="full", content="", snapshot_hash=compute_hash(""))
        memory_store.persist_lock_record(record)
        with pytest.raises(DuplicateLockError):
            memory_store.persist_lock_record(record)

    def test_lookup(self):
        store = InMemoryLockStore()
        assert store.load_lock_record("a") is None
        assert not store.has_lock_record("a")
        assert store.commit_ids() == []


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


class TestLockRecords:
    def test_store_order(self, chain, memory_store):
        ids = _record_linear(chain, 3)
        records = list(SnapshotChain(store=memory_store).lock_records())
        assert [r.commit_id for r in records] == ids
        assert [r.kind for r in records] == ["full", "diff", "diff"]
        assert records[2].snapshot_hash == _version(2).hash()

    def test_no_store(self, sample_snapshot):
        chain = SnapshotChain()
        chain.record_commit("a", sample_snapshot)
        assert list(chain.lock_records()) == []
