"""Gitlock Lite: local-first lock storage for Gitlock."""

from __future__ import annotations

from gitlock_lite.storage.sqlite_store import SQLiteLockStore

__all__ = ["SQLiteLockStore"]
