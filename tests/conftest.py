"""Shared test fixtures for Gitlock."""

import pytest

from gitlock_core.chain import InMemoryLockStore, SnapshotChain
from gitlock_core.config.models import ChainConfig, GitlockConfig, StoreConfig
from gitlock_core.hashing import DIRECTORY_HASH, compute_hash
from gitlock_core.snapshot import FileEntry, Snapshot
from gitlock_lite.storage import SQLiteLockStore


@pytest.fixture
def sample_entries():
    """One top-level file plus a directory holding two files, sorted by path."""
    return [
        FileEntry(mode="100644", hash=compute_hash("# Widget\n"), path="README.md"),
        FileEntry(mode="40000", hash=DIRECTORY_HASH, path="src"),
        FileEntry(mode="100644", hash=compute_hash("print('hi')\n"), path="src/main.py"),
        FileEntry(mode="100755", hash=compute_hash("#!/bin/sh\n"), path="src/run.sh"),
    ]


@pytest.fixture
def sample_snapshot(sample_entries):
    return Snapshot.from_entries(sample_entries)


@pytest.fixture
def memory_store():
    return InMemoryLockStore()


@pytest.fixture
def chain(memory_store):
    return SnapshotChain(store=memory_store)


@pytest.fixture
def sqlite_store(tmp_path):
    store = SQLiteLockStore(db_path=str(tmp_path / "locks.db"))
    yield store
    store.close()


@pytest.fixture
def sample_config():
    return GitlockConfig(
        chain=ChainConfig(evict_processed=True, progress_interval=0.5),
        store=StoreConfig(provider="memory"),
        log_level="debug",
    )
