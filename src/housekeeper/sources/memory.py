"""
In-memory artifact store.

Keeps artifacts in a dictionary. Used for tests, dry runs and embedding
the scheduler in other tools.
"""

import logging
import uuid
from collections.abc import Callable, Iterable
from datetime import datetime, timezone

from housekeeper.retention.models import Artifact
from housekeeper.retention.usage import UsageSnapshot
from housekeeper.sources.base import ArtifactSource, VolumeSource

logger = logging.getLogger(__name__)


class InMemoryArtifactStore(ArtifactSource, VolumeSource):
    """Artifact store backed by a dictionary keyed by artifact id."""

    source_type = "memory"

    def __init__(
        self,
        artifacts: Iterable[Artifact] | None = None,
        usage: UsageSnapshot | None = None,
        volume_id: str = "memory",
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Initialize the store.

        Args:
            artifacts: Initial artifacts
            usage: Usage snapshot reported by usage()
            volume_id: Identifier reported as the volume
            clock: Time source for created artifacts
        """
        self._artifacts: dict[str, Artifact] = {}
        for artifact in artifacts or ():
            self._artifacts[artifact.id] = artifact
        self._volume_id = volume_id
        self._usage = usage
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def volume_id(self) -> str:
        return self._volume_id

    def list(self) -> list[Artifact]:
        return sorted(self._artifacts.values(), key=lambda a: a.id)

    def create(self) -> str:
        artifact = Artifact(
            id=f"mem-{uuid.uuid4().hex[:16]}",
            created_at=self._clock(),
            origin=self._volume_id,
        )
        self._artifacts[artifact.id] = artifact
        logger.info(f"Created artifact: {artifact.id}")
        return artifact.id

    def delete(self, artifact_id: str) -> Artifact | None:
        return self._artifacts.pop(artifact_id, None)

    def usage(self) -> UsageSnapshot:
        if self._usage is not None:
            return self._usage
        # report an empty volume sized to the stored artifacts
        used = sum(a.size_bytes or 0 for a in self._artifacts.values())
        capacity = max(used, 1)
        return UsageSnapshot(
            volume_id=self._volume_id,
            capacity_bytes=capacity,
            free_bytes=capacity - used,
            shadow_max_bytes=capacity,
            shadow_allocated_bytes=used,
            shadow_used_bytes=used,
        )

    def __contains__(self, artifact_id: object) -> bool:
        return artifact_id in self._artifacts

    def __len__(self) -> int:
        return len(self._artifacts)
