"""Export reconstructed snapshots as standalone proof files."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel, Field

from gitlock_core.chain.chain import SnapshotChain
from gitlock_core.errors import ChainIntegrityError

logger = logging.getLogger(__name__)

PROOF_LIST_NAME = "list.txt"


class ProofEntry(BaseModel):
    commit_id: str
    snapshot_hash: str


class ProofExport(BaseModel):
    """What :func:`export_proofs` wrote."""

    out_dir: Path
    entries: list[ProofEntry] = Field(default_factory=list)


def export_proofs(
    chain: SnapshotChain, commit_ids: Iterable[str], out_dir: str | Path
) -> ProofExport:
    """Write ``<snapshot_hash>.txt`` per commit plus an index ``list.txt``.

    Each file holds the exact snapshot bytes, so hashing it with sha256
    reproduces the commitment. The index lists ``<commit> <hash>`` lines
    in the order given. A snapshot that does not rehash to its recorded
    value raises :class:`ChainIntegrityError` before anything is written
    for that commit.
    """
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    export = ProofExport(out_dir=out)
    owned = set(chain.cache.cached_ids())

    for commit_id in commit_ids:
        recorded = chain.node(commit_id).snapshot_hash
        snapshot = chain.get_full_snapshot(commit_id)
        if snapshot.hash() != recorded:
            raise ChainIntegrityError(
                commit_id, commit_id, "reconstructed snapshot does not match its recorded hash"
            )
        (out / f"{recorded}.txt").write_bytes(snapshot.to_text().encode("utf-8"))
        export.entries.append(ProofEntry(commit_id=commit_id, snapshot_hash=recorded))
        chain.cache.evict_except(owned | {commit_id})

    index = "".join(f"{e.commit_id} {e.snapshot_hash}\n" for e in export.entries)
    (out / PROOF_LIST_NAME).write_text(index, encoding="utf-8")
    logger.info("exported %d proof(s) to %s", len(export.entries), out)
    return export
