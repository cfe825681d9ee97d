"""
Capacity usage evaluation.

Computes volume and shadow-storage utilization fractions from a usage
snapshot and flags threshold breaches.
"""

from pydantic import BaseModel, Field

from housekeeper.core.exceptions import InvalidVolumeError


class UsageSnapshot(BaseModel):
    """Capacity figures of a volume, read once per run."""

    volume_id: str = Field(default="", description="Volume identifier (drive or path)")
    capacity_bytes: int = Field(description="Total volume capacity")
    free_bytes: int = Field(description="Free bytes on the volume")
    shadow_max_bytes: int = Field(default=0, description="Maximum shadow storage size")
    shadow_allocated_bytes: int = Field(default=0, description="Allocated shadow storage")
    shadow_used_bytes: int = Field(default=0, description="Used shadow storage")

    model_config = {"frozen": True}

    @property
    def used_bytes(self) -> int:
        return self.capacity_bytes - self.free_bytes


class Thresholds(BaseModel):
    """Optional usage limits; an absent limit disables that check."""

    volume: float | None = Field(default=None, ge=0, description="Volume usage fraction limit")
    shadow: float | None = Field(default=None, ge=0, description="Shadow usage fraction limit")

    model_config = {"frozen": True, "extra": "forbid"}


class UsageEvaluation(BaseModel):
    """Result of evaluating a usage snapshot against thresholds."""

    snapshot: UsageSnapshot
    volume_fraction: float
    shadow_fraction: float
    exceeded: bool = False
    breached: list[str] = Field(default_factory=list, description="Axes over their limit")

    model_config = {"frozen": True}


def volume_fraction(usage: UsageSnapshot) -> float:
    """Return the used fraction of the volume."""
    if usage.capacity_bytes <= 0:
        raise InvalidVolumeError(
            f"Volume capacity must be positive: {usage.capacity_bytes}",
            volume_id=usage.volume_id,
            axis="volume",
        )
    return (usage.capacity_bytes - usage.free_bytes) / usage.capacity_bytes


def shadow_fraction(usage: UsageSnapshot) -> float:
    """Return shadow storage use relative to its effective maximum."""
    denominator = min(usage.shadow_max_bytes, usage.capacity_bytes)
    if denominator <= 0:
        raise InvalidVolumeError(
            f"Shadow storage limit must be positive: {denominator}",
            volume_id=usage.volume_id,
            axis="shadow",
        )
    return usage.shadow_used_bytes / denominator


def evaluate(usage: UsageSnapshot, thresholds: Thresholds | None = None) -> UsageEvaluation:
    """
    Evaluate utilization and check it against thresholds.

    A threshold is exceeded only when the fraction is strictly above it.

    Raises:
        InvalidVolumeError: If capacity or the shadow limit is not positive
    """
    thresholds = thresholds or Thresholds()
    fractions = {
        "volume": volume_fraction(usage),
        "shadow": shadow_fraction(usage),
    }

    breached = []
    for axis, fraction in fractions.items():
        limit = getattr(thresholds, axis)
        if limit is not None and fraction > limit:
            breached.append(axis)

    return UsageEvaluation(
        snapshot=usage,
        volume_fraction=fractions["volume"],
        shadow_fraction=fractions["shadow"],
        exceeded=bool(breached),
        breached=breached,
    )


class UsageEvaluator:
    """Evaluates usage snapshots against a fixed set of thresholds."""

    def __init__(self, thresholds: Thresholds | None = None):
        self.thresholds = thresholds or Thresholds()

    def evaluate(self, usage: UsageSnapshot) -> UsageEvaluation:
        return evaluate(usage, self.thresholds)
