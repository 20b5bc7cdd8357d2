"""Commit tree snapshots and their line-oriented serialization."""

from gitlock_core.snapshot.models import FileEntry, Snapshot

__all__ = [
    "FileEntry",
    "Snapshot",
]
