"""Driver that walks a commit history and records a lock for each commit."""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from collections.abc import Iterable

from pydantic import BaseModel

from gitlock_core.chain.chain import SnapshotChain
from gitlock_core.errors import ChainIntegrityError
from gitlock_core.interfaces.listing import CommitInfo, TreeListingProvider
from gitlock_core.snapshot import Snapshot

logger = logging.getLogger(__name__)


class BuildSummary(BaseModel):
    """Counts from one processing run."""

    total: int = 0
    processed: int = 0
    skipped: int = 0
    full: int = 0
    diff: int = 0


class ChainBuilder:
    """Records locks for a history given in parent-before-child order.

    Commits that already have a lock are skipped. Every commit registers its
    primary children with the chain's cache so materialized snapshots are
    released as soon as no further diff needs them.
    """

    def __init__(
        self,
        chain: SnapshotChain,
        listing: TreeListingProvider,
        progress_interval: float = 1.0,
    ) -> None:
        self.chain = chain
        self.listing = listing
        self.progress_interval = progress_interval

    def build(self, commits: Iterable[CommitInfo]) -> BuildSummary:
        commits = list(commits)
        summary = BuildSummary(total=len(commits))

        primary_children: dict[str, list[str]] = defaultdict(list)
        all_children: dict[str, list[str]] = defaultdict(list)
        for commit in commits:
            for parent_id in commit.parent_ids:
                all_children[parent_id].append(commit.commit_id)
            if commit.primary_parent is not None:
                primary_children[commit.primary_parent].append(commit.commit_id)

        existing = {c.commit_id for c in commits if self.chain.has_commit(c.commit_id)}
        last_report = time.monotonic()

        for done, commit in enumerate(commits, start=1):
            commit_id = commit.commit_id
            children = primary_children.get(commit_id, [])

            if commit_id in existing:
                self.chain.expect_children(commit_id, children)
                self.chain.mark_processed(commit_id, commit.primary_parent)
                summary.skipped += 1
            else:
                for child_id in all_children.get(commit_id, []):
                    if child_id in existing:
                        raise ChainIntegrityError(
                            child_id,
                            commit_id,
                            f"existing lock on {child_id} follows new commit {commit_id}",
                        )
                snapshot = Snapshot.from_entries(self.listing.get_commit_tree_listing(commit_id))
                node = self.chain.record_commit(
                    commit_id,
                    snapshot,
                    parent_id=commit.primary_parent,
                    child_ids=children,
                )
                summary.processed += 1
                if node.is_full:
                    summary.full += 1
                else:
                    summary.diff += 1

            now = time.monotonic()
            if now - last_report >= self.progress_interval:
                logger.info("%d of %d commits processed.", done, summary.total)
                last_report = now

        logger.info(
            "%d of %d commits processed successfully (%d skipped, %d full, %d diff).",
            summary.processed + summary.skipped,
            summary.total,
            summary.skipped,
            summary.full,
            summary.diff,
        )
        return summary
