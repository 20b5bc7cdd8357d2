"""Rehash reconstructed snapshots and compare them against recorded hashes."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Literal

from pydantic import BaseModel, Field

from gitlock_core.chain.chain import SnapshotChain
from gitlock_core.errors import ChainIntegrityError, MalformedInputError

logger = logging.getLogger(__name__)


class VerificationFailure(BaseModel):
    """One commit whose lock could not be verified."""

    commit_id: str
    kind: Literal["mismatch", "broken-chain", "malformed"]
    detail: str
    expected_hash: str | None = None
    actual_hash: str | None = None


class VerificationReport(BaseModel):
    """Outcome of verifying a set of commits."""

    verified: list[str] = Field(default_factory=list)
    failures: list[VerificationFailure] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.verified) + len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures


def verify_chain(
    chain: SnapshotChain,
    commit_ids: Iterable[str] | None = None,
    expected: Mapping[str, str] | None = None,
) -> VerificationReport:
    """Verify each commit in *commit_ids* (default: every known commit).

    The reconstructed snapshot's hash is checked against *expected* when it
    names the commit, otherwise against the hash recorded in the lock. A
    failing commit is reported and the pass continues with the next one.
    """
    ids = list(commit_ids) if commit_ids is not None else chain.known_commit_ids()
    expected = expected or {}
    report = VerificationReport()
    # Snapshots cached before the pass belong to the caller
    owned = set(chain.cache.cached_ids())

    for commit_id in ids:
        _check_commit(chain, commit_id, expected.get(commit_id), report)
        # Keep only the latest snapshot; the next commit in store order
        # is usually its child
        chain.cache.evict_except(owned | {commit_id})

    for failure in report.failures:
        logger.warning("verification failed for %s: %s", failure.commit_id, failure.detail)
    logger.info("%d of %d locks verified", len(report.verified), report.total)
    return report


def _check_commit(
    chain: SnapshotChain, commit_id: str, want: str | None, report: VerificationReport
) -> None:
    try:
        want = want or chain.node(commit_id).snapshot_hash
        actual = chain.get_full_snapshot(commit_id).hash()
    except ChainIntegrityError as e:
        report.failures.append(
            VerificationFailure(commit_id=commit_id, kind="broken-chain", detail=str(e))
        )
        return
    except MalformedInputError as e:
        report.failures.append(
            VerificationFailure(commit_id=commit_id, kind="malformed", detail=str(e))
        )
        return

    if actual == want:
        report.verified.append(commit_id)
    else:
        report.failures.append(
            VerificationFailure(
                commit_id=commit_id,
                kind="mismatch",
                detail="reconstructed snapshot does not match its commitment",
                expected_hash=want,
                actual_hash=actual,
            )
        )
