"""
Artifact and volume source implementations.

Provides the collaborators the housekeeping run reads artifacts and
capacity figures from: Windows shadow copies, log directories, and an
in-memory store.
"""

from typing import TYPE_CHECKING

from housekeeper.sources.base import ArtifactSource, VolumeSource
from housekeeper.sources.directory import DirectorySource
from housekeeper.sources.memory import InMemoryArtifactStore
from housekeeper.sources.vss import VssSource, WmiClient

if TYPE_CHECKING:
    from housekeeper.config import SourceConfig

__all__ = [
    "ArtifactSource",
    "VolumeSource",
    "DirectorySource",
    "InMemoryArtifactStore",
    "VssSource",
    "WmiClient",
    "create_source",
]


def create_source(config: "SourceConfig") -> DirectorySource | VssSource | InMemoryArtifactStore:
    """
    Build the source described by a configuration section.

    Raises:
        SourceUnavailableError: If the source cannot be reached
    """
    kind = config.kind.lower()
    if kind == "vss":
        return VssSource(drive=config.drive)
    if kind == "directory":
        return DirectorySource(
            root_dir=config.root_dir,
            includes=config.includes,
            excludes=config.excludes,
            compress_exts=config.compress_exts,
            max_bytes=config.max_bytes,
        )
    return InMemoryArtifactStore(volume_id=config.drive)
