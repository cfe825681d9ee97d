"""
Log directory source.

Treats the files below a root directory as dated artifacts: rotated or
compressed log files selected by include/exclude glob patterns, aged by
their modification time.
"""

import fnmatch
import logging
import os
import shutil
from datetime import datetime
from pathlib import Path

from housekeeper.core.exceptions import DeletionFailedError, SourceUnavailableError
from housekeeper.retention.models import Artifact
from housekeeper.retention.usage import UsageSnapshot
from housekeeper.sources.base import ArtifactSource, VolumeSource

logger = logging.getLogger(__name__)

DEFAULT_COMPRESS_EXTS = (".gz", ".bz2", ".xz", ".tgz", ".tbz", ".txz", ".zip", ".7z", ".Z")


class DirectorySource(ArtifactSource, VolumeSource):
    """
    Artifact source over the files of a log directory.

    Artifact ids are POSIX paths relative to the root. Deletions are
    confined to the root, and directories left empty are removed.
    The shadow axis of the usage snapshot is the total size of the
    managed files measured against ``max_bytes``.
    """

    source_type = "directory"

    def __init__(
        self,
        root_dir: Path | str,
        includes: list[str] | None = None,
        excludes: list[str] | None = None,
        compress_exts: tuple[str, ...] | list[str] = DEFAULT_COMPRESS_EXTS,
        max_bytes: int | None = None,
    ):
        """
        Initialize the source.

        Args:
            root_dir: Directory holding the managed files
            includes: Glob patterns a file name must match (None = all)
            excludes: Glob patterns that exclude a file name
            compress_exts: Extensions stripped before pattern matching
            max_bytes: Capacity of the managed files (None = volume capacity)
        """
        self._root = Path(root_dir).resolve()
        self._includes = list(includes) if includes else None
        self._excludes = list(excludes or [])
        self._compress_exts = tuple(compress_exts)
        self._max_bytes = max_bytes

    @property
    def root_dir(self) -> Path:
        return self._root

    @property
    def volume_id(self) -> str:
        return str(self._root)

    def is_managed(self, path: Path) -> bool:
        """Return True if the file name passes the include/exclude patterns."""
        name = path.name
        if path.suffix in self._compress_exts:
            name = path.stem

        if self._includes is not None and not any(
            fnmatch.fnmatch(name, pattern) for pattern in self._includes
        ):
            return False

        return not any(fnmatch.fnmatch(name, pattern) for pattern in self._excludes)

    def _ensure_root(self) -> None:
        if not self._root.is_dir():
            raise SourceUnavailableError(
                f"Artifact directory does not exist: {self._root}",
                source=self.source_type,
            )

    def _resolve(self, artifact_id: str) -> Path:
        path = (self._root / artifact_id).resolve()
        if path != self._root and self._root not in path.parents:
            raise DeletionFailedError(
                f"Path must be inside {self._root}: {artifact_id}",
                artifact_id=artifact_id,
            )
        return path

    def _managed_files(self) -> list[Path]:
        return sorted(
            path
            for path in self._root.rglob("*")
            if path.is_file() and not path.is_symlink() and self.is_managed(path)
        )

    def list(self) -> list[Artifact]:
        self._ensure_root()

        artifacts = []
        for path in self._managed_files():
            try:
                stat = path.stat()
            except OSError as e:
                logger.warning(f"Skip unreadable file {path}: {e}")
                continue
            artifacts.append(
                Artifact(
                    id=path.relative_to(self._root).as_posix(),
                    created_at=datetime.fromtimestamp(stat.st_mtime).astimezone(),
                    origin=str(self._root),
                    name=path.name,
                    size_bytes=stat.st_size,
                )
            )
        logger.debug(f"Found {len(artifacts)} managed files in {self._root}")
        return artifacts

    def create(self) -> str:
        raise SourceUnavailableError(
            "Source 'directory' cannot create artifacts; log files are written by the logging application",
            source=self.source_type,
        )

    def delete(self, artifact_id: str) -> Artifact | None:
        path = self._resolve(artifact_id)
        if not path.is_file():
            return None

        try:
            stat = path.stat()
            path.unlink()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise DeletionFailedError(
                f"Could not remove {path}: {e}",
                artifact_id=artifact_id,
            ) from e

        self._remove_empty_parents(path.parent)
        return Artifact(
            id=artifact_id,
            created_at=datetime.fromtimestamp(stat.st_mtime).astimezone(),
            origin=str(self._root),
            name=path.name,
            size_bytes=stat.st_size,
        )

    def _remove_empty_parents(self, directory: Path) -> None:
        """Remove directories left empty, never the root itself."""
        while directory != self._root and self._root in directory.parents:
            if any(directory.iterdir()):
                return
            try:
                directory.rmdir()
            except OSError as e:
                logger.warning(f"Could not remove empty directory {directory}: {e}")
                return
            logger.info(f"Removed empty directory: {directory}")
            directory = directory.parent

    def usage(self) -> UsageSnapshot:
        self._ensure_root()
        try:
            disk = shutil.disk_usage(self._root)
        except OSError as e:
            raise SourceUnavailableError(
                f"Cannot read disk usage of {self._root}: {e}",
                source=self.source_type,
            ) from e

        used = 0
        for path in self._managed_files():
            try:
                used += os.path.getsize(path)
            except OSError:
                continue

        return UsageSnapshot(
            volume_id=self.volume_id,
            capacity_bytes=disk.total,
            free_bytes=disk.free,
            shadow_max_bytes=self._max_bytes if self._max_bytes is not None else disk.total,
            shadow_allocated_bytes=used,
            shadow_used_bytes=used,
        )
