"""Content hashing primitives shared by snapshots and lock records."""

from __future__ import annotations

import hashlib
import re

HASH_PREFIX = "sha256-"

# Directory entries carry this instead of a content digest
DIRECTORY_HASH = HASH_PREFIX + "0" * 64

_HASH_RE = re.compile(r"sha256-[0-9a-f]{64}")


def compute_hash(content: bytes | str) -> str:
    """SHA-256 digest of *content* as ``sha256-<64 hex chars>``.

    Strings are encoded as UTF-8 before hashing.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    return HASH_PREFIX + hashlib.sha256(content).hexdigest()


def is_valid_hash(value: str) -> bool:
    """True if *value* is a well-formed content hash (sentinel included)."""
    return _HASH_RE.fullmatch(value) is not None
