"""Interfaces for the collaborators the lock chain depends on."""

from gitlock_core.interfaces.listing import CommitInfo, TreeListingProvider
from gitlock_core.interfaces.store import LockRecord, LockStore

__all__ = [
    "CommitInfo",
    "LockRecord",
    "LockStore",
    "TreeListingProvider",
]
