"""SQLite-backed lock record storage."""

from __future__ import annotations

from gitlock_lite.storage.sqlite_store import SQLiteLockStore

__all__ = ["SQLiteLockStore"]
