"""Gitlock Core - tamper-evident snapshot chain over a commit history."""

from gitlock_core.chain import ChainBuilder, InMemoryLockStore, SnapshotCache, SnapshotChain
from gitlock_core.config import GitlockConfig, load_config
from gitlock_core.diff import DiffScript, apply_diff, compute_diff, decode_diff, encode_diff
from gitlock_core.errors import (
    ChainIntegrityError,
    DuplicateLockError,
    GitlockError,
    MalformedDiffError,
    MalformedSnapshotError,
)
from gitlock_core.snapshot import FileEntry, Snapshot
from gitlock_core.verify import export_proofs, verify_chain

__version__ = "0.1.0"

__all__ = [
    "ChainBuilder",
    "ChainIntegrityError",
    "DiffScript",
    "DuplicateLockError",
    "FileEntry",
    "GitlockConfig",
    "GitlockError",
    "InMemoryLockStore",
    "MalformedDiffError",
    "MalformedSnapshotError",
    "Snapshot",
    "SnapshotCache",
    "SnapshotChain",
    "apply_diff",
    "compute_diff",
    "decode_diff",
    "encode_diff",
    "export_proofs",
    "load_config",
    "verify_chain",
]
