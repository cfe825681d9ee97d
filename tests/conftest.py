"""Pytest configuration and fixtures."""

import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Generator

import pytest

from housekeeper.retention import Artifact, Thresholds, UsageSnapshot


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_artifact() -> Callable[..., Artifact]:
    """Build an artifact from an ISO date; the id defaults to the date."""

    def _make(when: str, artifact_id: str | None = None, **kwargs) -> Artifact:
        created_at = datetime.fromisoformat(when)
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return Artifact(id=artifact_id or when, created_at=created_at, **kwargs)

    return _make


@pytest.fixture
def usage_snapshot() -> UsageSnapshot:
    """Volume 75% used, shadow storage 20% used."""
    return UsageSnapshot(
        volume_id="C:",
        capacity_bytes=1000,
        free_bytes=250,
        shadow_max_bytes=500,
        shadow_allocated_bytes=150,
        shadow_used_bytes=100,
    )


@pytest.fixture
def thresholds() -> Thresholds:
    return Thresholds(volume=0.7, shadow=0.5)
