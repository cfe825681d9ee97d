"""
Deletion orchestration.

Applies a scheduler's deletion set to an artifact store one artifact at a
time. A failure on one artifact never prevents attempts on the others.
"""

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from housekeeper.retention.models import Artifact

if TYPE_CHECKING:
    from housekeeper.sources.base import ArtifactSource

logger = logging.getLogger(__name__)


class DeletionOutcome(BaseModel):
    """Result of a deletion pass."""

    attempted: int = Field(default=0, description="Number of deletions attempted")
    deleted_count: int = Field(default=0, description="Number of confirmed deletions")
    missing: list[str] = Field(
        default_factory=list, description="Artifact IDs already gone from the store"
    )
    failed: list[str] = Field(
        default_factory=list, description="Artifact IDs whose deletion raised"
    )
    errors: list[str] = Field(default_factory=list, description="Any errors encountered")
    dry_run: bool = Field(default=False, description="Whether the store was left untouched")

    @property
    def success(self) -> bool:
        return not self.failed


class DeletionOrchestrator:
    """
    Sequential, failure-tolerant deletion of artifacts.

    The store is injected so tests can substitute a fake. Re-running after
    a partial failure is safe: artifacts already removed simply no longer
    show up in the next listing.
    """

    def __init__(self, store: "ArtifactSource", dry_run: bool = False):
        """
        Initialize the orchestrator.

        Args:
            store: Artifact store that performs deletions
            dry_run: If True, log what would be deleted without deleting
        """
        self._store = store
        self._dry_run = dry_run

    def delete_all(self, deletion: Iterable[Artifact]) -> DeletionOutcome:
        """
        Delete every artifact in the deletion set.

        Args:
            deletion: Artifacts selected for deletion

        Returns:
            DeletionOutcome with the confirmed deletion count
        """
        outcome = DeletionOutcome(dry_run=self._dry_run)

        for artifact in deletion:
            outcome.attempted += 1

            if self._dry_run:
                logger.info(f"Would delete artifact: {artifact.describe()}")
                outcome.deleted_count += 1
                continue

            logger.info(f"Delete artifact: {artifact.describe()}")
            try:
                deleted = self._store.delete(artifact.id)
            except Exception as e:
                logger.error(f"Failed to delete artifact {artifact.id}: {e}")
                outcome.failed.append(artifact.id)
                outcome.errors.append(f"Failed to delete {artifact.id}: {e}")
                continue

            if deleted is None:
                logger.warning(f"Artifact not found, skipped: {artifact.id}")
                outcome.missing.append(artifact.id)
                continue

            outcome.deleted_count += 1

        logger.info(
            f"Deleted {outcome.deleted_count} of {outcome.attempted} artifacts"
            + (" (dry run)" if self._dry_run else "")
        )
        return outcome


def delete_all(
    deletion: Iterable[Artifact],
    store: "ArtifactSource",
    dry_run: bool = False,
) -> int:
    """Delete artifacts from a store and return the confirmed count."""
    return DeletionOrchestrator(store, dry_run=dry_run).delete_all(deletion).deleted_count
