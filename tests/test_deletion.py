"""Tests for the deletion orchestrator."""

import logging
from unittest.mock import MagicMock

import pytest

from housekeeper.core.exceptions import DeletionFailedError
from housekeeper.retention import DeletionOrchestrator, delete_all
from housekeeper.sources import InMemoryArtifactStore


class FlakyStore(InMemoryArtifactStore):
    """In-memory store that fails to delete selected ids."""

    def __init__(self, artifacts, failing: set[str]):
        super().__init__(artifacts)
        self.failing = failing
        self.calls: list[str] = []

    def delete(self, artifact_id):
        self.calls.append(artifact_id)
        if artifact_id in self.failing:
            raise DeletionFailedError("Access denied", artifact_id=artifact_id)
        return super().delete(artifact_id)


@pytest.fixture
def three_artifacts(make_artifact):
    return [
        make_artifact("2024-01-01", "a"),
        make_artifact("2024-01-02", "b"),
        make_artifact("2024-01-03", "c"),
    ]


class TestDeletionOrchestrator:
    """Tests for DeletionOrchestrator.delete_all."""

    def test_deletes_every_artifact(self, three_artifacts):
        """Test all artifacts are removed from the store."""
        store = InMemoryArtifactStore(three_artifacts)
        outcome = DeletionOrchestrator(store).delete_all(three_artifacts)

        assert outcome.deleted_count == 3
        assert outcome.attempted == 3
        assert outcome.success is True
        assert len(store) == 0

    def test_failure_does_not_stop_remaining(self, three_artifacts, caplog):
        """Test one failing deletion is logged and the others still happen."""
        store = FlakyStore(three_artifacts, failing={"b"})

        with caplog.at_level(logging.INFO, logger="housekeeper"):
            outcome = DeletionOrchestrator(store).delete_all(three_artifacts)

        assert outcome.deleted_count == 2
        assert outcome.failed == ["b"]
        assert store.calls == ["a", "b", "c"]
        assert "b" in store
        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 1
        assert "Access denied" in errors[0].getMessage()

    def test_every_attempt_logged(self, three_artifacts, caplog):
        """Test each deletion attempt is logged at info before it runs."""
        store = InMemoryArtifactStore(three_artifacts)
        with caplog.at_level(logging.INFO, logger="housekeeper"):
            DeletionOrchestrator(store).delete_all(three_artifacts)

        attempts = [r for r in caplog.records if r.getMessage().startswith("Delete artifact:")]
        assert len(attempts) == 3

    def test_missing_artifact_skipped(self, three_artifacts, caplog):
        """Test an artifact already gone is counted as missing, not deleted."""
        store = InMemoryArtifactStore(three_artifacts[:2])
        with caplog.at_level(logging.WARNING, logger="housekeeper"):
            outcome = DeletionOrchestrator(store).delete_all(three_artifacts)

        assert outcome.deleted_count == 2
        assert outcome.missing == ["c"]
        assert outcome.success is True
        assert "Artifact not found" in caplog.text

    def test_unexpected_exception_recorded(self, three_artifacts):
        """Test any exception from the store is recovered per artifact."""
        store = MagicMock()
        store.delete.side_effect = [three_artifacts[0], RuntimeError("boom"), three_artifacts[2]]

        outcome = DeletionOrchestrator(store).delete_all(three_artifacts)

        assert outcome.deleted_count == 2
        assert outcome.failed == ["b"]
        assert "boom" in outcome.errors[0]

    def test_dry_run_leaves_store_untouched(self, three_artifacts, caplog):
        """Test dry run logs and counts deletions without performing them."""
        store = InMemoryArtifactStore(three_artifacts)
        with caplog.at_level(logging.INFO, logger="housekeeper"):
            outcome = DeletionOrchestrator(store, dry_run=True).delete_all(three_artifacts)

        assert outcome.dry_run is True
        assert outcome.deleted_count == 3
        assert len(store) == 3
        assert "Would delete artifact" in caplog.text

    def test_empty_deletion_set(self):
        """Test nothing happens for an empty deletion set."""
        store = MagicMock()
        outcome = DeletionOrchestrator(store).delete_all([])
        assert outcome.attempted == 0
        store.delete.assert_not_called()


class TestDeleteAllFunction:
    """Tests for the delete_all convenience function."""

    def test_returns_confirmed_count(self, three_artifacts):
        """Test the function returns the number of confirmed deletions."""
        store = FlakyStore(three_artifacts, failing={"a"})
        assert delete_all(three_artifacts, store) == 2
