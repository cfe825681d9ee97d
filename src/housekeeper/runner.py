"""
Housekeeping run pipeline.

A run lists the artifacts of a source, classifies them into generations,
evaluates capacity usage, deletes the deletion set, records the report in
the run log and notifies the configured channels.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from housekeeper.config import HousekeeperConfig
from housekeeper.core.exceptions import (
    HousekeeperError,
    InvalidArtifactError,
    SourceUnavailableError,
)
from housekeeper.notifications import (
    BaseChannel,
    DeliveryResult,
    NotificationDispatcher,
    channels_from_config,
    report_notification,
)
from housekeeper.reporting import RunLog, RunReport, build_report
from housekeeper.retention import (
    Artifact,
    Classification,
    DeletionOrchestrator,
    DeletionOutcome,
    RetentionPolicy,
    RetentionScheduler,
    Thresholds,
    UsageEvaluation,
    UsageEvaluator,
    UsageSnapshot,
)
from housekeeper.sources import ArtifactSource, VolumeSource, create_source

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Result of a housekeeping run."""

    report: RunReport
    classification: Classification
    evaluation: UsageEvaluation
    outcome: DeletionOutcome
    deliveries: list[DeliveryResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.outcome.success


class HousekeepingRunner:
    """
    Runs the housekeeping pipeline against one source.

    The artifact source and the volume source are usually the same object;
    they are separate so capacity can be measured elsewhere.
    """

    def __init__(
        self,
        source: ArtifactSource,
        volume_source: VolumeSource,
        policy: RetentionPolicy,
        thresholds: Thresholds | None = None,
        run_log: RunLog | None = None,
        channels: list[BaseChannel] | None = None,
        dry_run: bool = False,
        clock: Callable[[], datetime] | None = None,
    ):
        self.source = source
        self.volume_source = volume_source
        self.policy = policy
        self.thresholds = thresholds or Thresholds()
        self.run_log = run_log
        self.dispatcher = NotificationDispatcher(channels)
        self.dry_run = dry_run
        self._clock = clock or (lambda: datetime.now().astimezone())

    @classmethod
    def from_config(
        cls,
        config: HousekeeperConfig,
        notify: bool = True,
        dry_run: bool | None = None,
    ) -> "HousekeepingRunner":
        """
        Build a runner from a loaded configuration.

        Args:
            config: Validated configuration
            notify: Whether to build the configured notification channels
            dry_run: Override the configured dry-run flag
        """
        source = create_source(config.source)
        return cls(
            source=source,
            volume_source=source,
            policy=config.policy(),
            thresholds=config.threshold,
            run_log=RunLog(config.data_file),
            channels=channels_from_config(config) if notify else [],
            dry_run=config.dry_run if dry_run is None else dry_run,
        )

    def list_artifacts(self) -> list[Artifact]:
        """List the source's artifacts, wrapping failures as SourceUnavailableError."""
        try:
            return self.source.list()
        except (InvalidArtifactError, SourceUnavailableError):
            raise
        except HousekeeperError as e:
            raise SourceUnavailableError(str(e), source=self.source.source_type, details=e.details) from e
        except OSError as e:
            raise SourceUnavailableError(
                f"Failed to list artifacts: {e}", source=self.source.source_type
            ) from e

    def measure(self) -> UsageSnapshot:
        """Read the capacity figures of the volume source."""
        try:
            return self.volume_source.usage()
        except OSError as e:
            raise SourceUnavailableError(
                f"Failed to read volume usage: {e}", source=self.volume_source.volume_id
            ) from e

    def plan(self) -> Classification:
        """Classify the current artifacts without deleting anything."""
        return RetentionScheduler(self.policy).classify(self.list_artifacts())

    def execute(self) -> RunResult:
        """
        Execute a full run.

        Returns:
            RunResult with the report and the per-stage results

        Raises:
            SourceUnavailableError: If artifacts or usage cannot be read
            InvalidArtifactError: If an artifact has no usable timestamp
            InvalidVolumeError: If the volume figures are unusable
        """
        started_at = self._clock()
        logger.info(f"Run started on {self.volume_source.volume_id} (dry_run={self.dry_run})")

        classification = self.plan()
        evaluation = UsageEvaluator(self.thresholds).evaluate(self.measure())
        if evaluation.exceeded:
            logger.warning(f"Usage threshold exceeded: {', '.join(evaluation.breached)}")

        orchestrator = DeletionOrchestrator(self.source, dry_run=self.dry_run)
        outcome = orchestrator.delete_all(classification.deletion)

        report = build_report(
            started_at,
            self.volume_source.volume_id,
            evaluation,
            classification,
            outcome.deleted_count,
            dry_run=self.dry_run,
        )
        if self.run_log is not None:
            self.run_log.append(report)

        deliveries = self.dispatcher.send_notification(report_notification(report))

        logger.info(f"Run finished: {outcome.deleted_count} deleted, {len(outcome.failed)} failed")
        return RunResult(
            report=report,
            classification=classification,
            evaluation=evaluation,
            outcome=outcome,
            deliveries=deliveries,
        )

    def close(self) -> None:
        """Release notification channel resources."""
        self.dispatcher.close()
