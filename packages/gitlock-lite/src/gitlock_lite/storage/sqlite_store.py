"""LockStore implementation backed by a local SQLite database."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path

from gitlock_core.errors import DuplicateLockError
from gitlock_core.interfaces.store import LockRecord

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS locks (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    commit_id TEXT NOT NULL UNIQUE,
    parent_id TEXT,
    kind TEXT NOT NULL CHECK (kind IN ('full', 'diff')),
    content TEXT NOT NULL,
    snapshot_hash TEXT NOT NULL,
    created_at TEXT NOT NULL
);
"""

_COLUMNS = "commit_id, parent_id, kind, content, snapshot_hash, created_at"


class SQLiteLockStore:
    """LockStore implementation using SQLite with WAL mode.

    Records are write-once and come back from :meth:`commit_ids` in the
    order they were persisted, which is parent-before-child for a chain
    built by ChainBuilder.
    """

    def __init__(self, db_path: str = ".gitlock/locks.db") -> None:
        path = Path(db_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        self.db_path = str(path)
        self._conn = sqlite3.connect(self.db_path, isolation_level=None, timeout=5)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    # -- helpers ---------------------------------------------------------------

    def _row_to_record(self, row: tuple) -> LockRecord:
        commit_id, parent_id, kind, content, snapshot_hash, created_at = row
        return LockRecord(
            commit_id=commit_id,
            parent_id=parent_id,
            kind=kind,
            content=content,
            snapshot_hash=snapshot_hash,
            created_at=datetime.fromisoformat(created_at),
        )

    # -- LockStore protocol ----------------------------------------------------

    def persist_lock_record(self, record: LockRecord) -> None:
        """Insert a record. Raises DuplicateLockError if the commit is locked."""
        try:
            self._conn.execute(
                f"INSERT INTO locks ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    record.commit_id,
                    record.parent_id,
                    record.kind,
                    record.content,
                    record.snapshot_hash,
                    record.created_at.isoformat(),
                ),
            )
        except sqlite3.IntegrityError as e:
            raise DuplicateLockError(record.commit_id) from e

    def load_lock_record(self, commit_id: str) -> LockRecord | None:
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM locks WHERE commit_id = ?", (commit_id,)
        ).fetchone()
        return self._row_to_record(row) if row is not None else None

    def has_lock_record(self, commit_id: str) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM locks WHERE commit_id = ?", (commit_id,)
        ).fetchone()
        return row is not None

    def commit_ids(self) -> list[str]:
        rows = self._conn.execute("SELECT commit_id FROM locks ORDER BY seq ASC").fetchall()
        return [r[0] for r in rows]

    # -- extras ----------------------------------------------------------------

    def stats(self) -> dict[str, int]:
        """Count records grouped by kind."""
        rows = self._conn.execute(
            "SELECT kind, COUNT(*) FROM locks GROUP BY kind"
        ).fetchall()
        counts = {"full": 0, "diff": 0}
        for kind, count in rows:
            counts[kind] = count
        return counts

    def close(self) -> None:
        self._conn.close()
