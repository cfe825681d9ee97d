"""
Base classes for artifact and volume sources.

All sources must inherit from ArtifactSource or VolumeSource and are
passed explicitly to the components that use them.
"""

from abc import ABC, abstractmethod

from housekeeper.retention.models import Artifact
from housekeeper.retention.usage import UsageSnapshot


class ArtifactSource(ABC):
    """
    Abstract store of dated artifacts.

    All sources must implement:
    - list(): Enumerate current artifacts
    - create(): Create a new artifact and return its id
    - delete(): Remove an artifact by id
    """

    source_type: str = "base"

    @abstractmethod
    def list(self) -> list[Artifact]:
        """
        Enumerate the artifacts currently in the store.

        Raises:
            SourceUnavailableError: If the store cannot be read
        """

    @abstractmethod
    def create(self) -> str:
        """
        Create a new artifact and return its id.

        Raises:
            SourceUnavailableError: If the store cannot create artifacts
        """

    @abstractmethod
    def delete(self, artifact_id: str) -> Artifact | None:
        """
        Delete an artifact.

        Returns:
            The deleted artifact, or None if it was not found

        Raises:
            DeletionFailedError: If the artifact exists but could not be removed
        """


class VolumeSource(ABC):
    """Read-only provider of volume capacity figures."""

    @property
    @abstractmethod
    def volume_id(self) -> str:
        """Identifier of the volume reported on."""

    @abstractmethod
    def usage(self) -> UsageSnapshot:
        """
        Read the current usage snapshot.

        Raises:
            SourceUnavailableError: If the volume cannot be queried
        """
