"""
Run log writer for Housekeeper.

Appends one JSON report per run to a JSONL file, used for historical
trend analysis of capacity and retention.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from .report import RunReport

logger = logging.getLogger(__name__)


@dataclass
class WriteResult:
    """Result of a log write operation."""

    success: bool
    log_file: str
    error: str | None = None
    bytes_written: int = 0


class RunLog:
    """
    Append-only JSONL log of run reports.

    Runs never overlap, so appends need no locking; each record is
    flushed and synced before append() returns.
    """

    def __init__(self, path: Path | str):
        """
        Initialize the run log.

        Args:
            path: JSONL file to append to
        """
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def append(self, report: RunReport) -> WriteResult:
        """Append a report as a single line."""
        log_line = report.to_log_line() + "\n"
        bytes_to_write = len(log_line.encode("utf-8"))

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "a", encoding="utf-8") as f:
                f.write(log_line)
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            logger.error(f"Failed to append run report to {self._path}: {e}")
            return WriteResult(success=False, log_file=str(self._path), error=str(e))

        return WriteResult(
            success=True,
            log_file=str(self._path),
            bytes_written=bytes_to_write,
        )

    def read(self, limit: int | None = None) -> list[RunReport]:
        """
        Read reports, oldest first.

        Args:
            limit: Return only the most recent N reports

        Returns:
            List of reports; unreadable lines are skipped
        """
        if not self._path.exists():
            return []

        reports = []
        with open(self._path, encoding="utf-8") as f:
            for line_no, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    reports.append(RunReport.model_validate(json.loads(line)))
                except (json.JSONDecodeError, ValidationError):
                    logger.warning(f"Skip invalid run log line {line_no} in {self._path}")

        if limit is not None:
            reports = reports[-limit:] if limit > 0 else []
        return reports
