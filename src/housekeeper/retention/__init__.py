"""
Housekeeper Retention Module.

Provides the generational retention scheduler, usage evaluation and the
deletion orchestrator that applies the scheduler's decisions.
"""

from .models import (
    BUCKET_FORMATS,
    TIER_ORDER,
    Artifact,
    Bucket,
    Classification,
    GenerationMap,
    RetentionPolicy,
    Tier,
    TierGeneration,
    TierName,
)
from .scheduler import RetentionScheduler, classify
from .usage import Thresholds, UsageEvaluation, UsageEvaluator, UsageSnapshot, evaluate
from .deletion import DeletionOrchestrator, DeletionOutcome, delete_all

__all__ = [
    # Models
    "Artifact",
    "Bucket",
    "Classification",
    "GenerationMap",
    "RetentionPolicy",
    "Tier",
    "TierGeneration",
    "TierName",
    "TIER_ORDER",
    "BUCKET_FORMATS",
    # Scheduling
    "RetentionScheduler",
    "classify",
    # Usage
    "UsageSnapshot",
    "Thresholds",
    "UsageEvaluation",
    "UsageEvaluator",
    "evaluate",
    # Deletion
    "DeletionOrchestrator",
    "DeletionOutcome",
    "delete_all",
]
