"""
Run report models.

A RunReport is the structured summary of one housekeeping run: capacity
figures, per-tier retained counts, and the deletion count. It is appended
to the run log and handed to the notification channels verbatim.
"""

import socket
from datetime import datetime
from enum import Enum

import yaml
from pydantic import BaseModel, Field

from housekeeper.retention.models import Classification
from housekeeper.retention.usage import UsageEvaluation


class ReportSeverity(str, Enum):
    """Severity of a run report."""

    INFO = "info"
    WARNING = "warning"


class ShadowFigures(BaseModel):
    """Shadow storage figures in bytes."""

    max: int
    allocated: int
    used: int


class SpaceFigures(BaseModel):
    """Volume capacity figures in bytes."""

    capacity: int
    free: int
    shadow: ShadowFigures


class UsageFractions(BaseModel):
    """Utilization fractions (0.0 - 1.0)."""

    volume: float
    shadow: float


class RunReport(BaseModel):
    """Summary of a single housekeeping run."""

    time: str = Field(description="ISO timestamp of the run")
    host: str = Field(description="Host the run executed on")
    volume: str = Field(description="Volume identifier")
    space: SpaceFigures
    usage: UsageFractions
    generation: dict[str, int] = Field(
        default_factory=dict, description="Retained artifacts per tier plus 'delete'"
    )
    deleted: int = Field(default=0, description="Confirmed deletions")
    exceeded: bool = Field(default=False, description="Whether a usage threshold was exceeded")
    breached: list[str] = Field(default_factory=list, description="Axes over their threshold")
    severity: ReportSeverity = ReportSeverity.INFO
    dry_run: bool = False

    def to_log_line(self) -> str:
        """Convert to JSONL string for file storage."""
        return self.model_dump_json()

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.model_dump(mode="json"), sort_keys=False)


def build_report(
    time: datetime,
    volume_id: str,
    evaluation: UsageEvaluation,
    classification: Classification,
    deleted_count: int,
    host: str | None = None,
    dry_run: bool = False,
) -> RunReport:
    """
    Assemble the report of a run.

    Args:
        time: When the run started
        volume_id: Volume identifier
        evaluation: Usage evaluation of the run
        classification: Generations and deletion set of the run
        deleted_count: Confirmed deletions
        host: Host name (default: this machine)
        dry_run: Whether deletions were simulated

    Returns:
        RunReport record
    """
    if time.tzinfo is None:
        # naive times are local
        time = time.astimezone()
    snapshot = evaluation.snapshot

    return RunReport(
        time=time.isoformat(),
        host=host or socket.gethostname(),
        volume=volume_id,
        space=SpaceFigures(
            capacity=snapshot.capacity_bytes,
            free=snapshot.free_bytes,
            shadow=ShadowFigures(
                max=snapshot.shadow_max_bytes,
                allocated=snapshot.shadow_allocated_bytes,
                used=snapshot.shadow_used_bytes,
            ),
        ),
        usage=UsageFractions(
            volume=evaluation.volume_fraction,
            shadow=evaluation.shadow_fraction,
        ),
        generation=classification.counts(),
        deleted=deleted_count,
        exceeded=evaluation.exceeded,
        breached=list(evaluation.breached),
        severity=ReportSeverity.WARNING if evaluation.exceeded else ReportSeverity.INFO,
        dry_run=dry_run,
    )
