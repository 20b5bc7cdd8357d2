"""Per-commit snapshot chain with diff storage and lazy reconstruction."""

from gitlock_core.chain.builder import BuildSummary, ChainBuilder
from gitlock_core.chain.cache import SnapshotCache
from gitlock_core.chain.chain import SnapshotChain
from gitlock_core.chain.models import ChainNode
from gitlock_core.chain.store import InMemoryLockStore

__all__ = [
    "BuildSummary",
    "ChainBuilder",
    "ChainNode",
    "InMemoryLockStore",
    "SnapshotCache",
    "SnapshotChain",
]
