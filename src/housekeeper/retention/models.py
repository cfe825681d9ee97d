"""
Data models for generational retention.

Defines artifacts, retention tiers and policies, and the immutable
classification produced by a single scheduling pass.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from housekeeper.core.exceptions import ConfigurationError


class TierName(Enum):
    """Retention tiers, declared from coarsest to finest granularity."""

    YEARLY = "yearly"
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    DAILY = "daily"
    HOURLY = "hourly"


# Fixed evaluation order of the tiers.
TIER_ORDER: tuple[TierName, ...] = tuple(TierName)


def _yearly_key(ts: datetime) -> str:
    return f"{ts.year:04d}"


def _monthly_key(ts: datetime) -> str:
    return f"{ts.year:04d}-{ts.month:02d}"


def _weekly_key(ts: datetime) -> str:
    iso = ts.isocalendar()
    return f"{iso[0]:04d}-W{iso[1]:02d}"


def _daily_key(ts: datetime) -> str:
    return f"{ts.year:04d}-{ts.month:02d}-{ts.day:02d}"


def _hourly_key(ts: datetime) -> str:
    return f"{ts.year:04d}-{ts.month:02d}-{ts.day:02d}T{ts.hour:02d}"


# Keys are zero padded, so lexical order equals chronological order.
BUCKET_FORMATS: dict[TierName, Callable[[datetime], str]] = {
    TierName.YEARLY: _yearly_key,
    TierName.MONTHLY: _monthly_key,
    TierName.WEEKLY: _weekly_key,
    TierName.DAILY: _daily_key,
    TierName.HOURLY: _hourly_key,
}


@dataclass(frozen=True, eq=False)
class Artifact:
    """
    A timestamped unit of retention (snapshot or log file).

    Identity is the ``id`` alone: the same artifact observed by two
    separate queries compares equal even if other fields differ.
    """

    id: str
    created_at: datetime | str | None
    origin: str | None = None
    name: str | None = None
    size_bytes: int | None = None
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Artifact):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def describe(self) -> str:
        """Return a short human-readable label."""
        label = self.name or self.id
        if isinstance(self.created_at, datetime):
            return f"{label} ({self.created_at.isoformat()})"
        return f"{label} ({self.created_at})"


@dataclass(frozen=True)
class Tier:
    """A retention rule: bucket granularity plus a keep quota."""

    name: TierName
    quota: int = 0

    def bucket_key(self, ts: datetime) -> str:
        """Return the bucket key of a timestamp for this tier."""
        return BUCKET_FORMATS[self.name](ts)

    @property
    def enabled(self) -> bool:
        return self.quota > 0


@dataclass(frozen=True)
class RetentionPolicy:
    """
    Ordered set of retention tiers.

    Tiers are always evaluated yearly -> monthly -> weekly -> daily ->
    hourly, whatever order they were declared in.
    """

    tiers: tuple[Tier, ...] = ()

    def __post_init__(self) -> None:
        seen: set[TierName] = set()
        for tier in self.tiers:
            if tier.name in seen:
                raise ConfigurationError(
                    f"Duplicate retention tier: {tier.name.value}",
                    config_key="keep",
                )
            if tier.quota < 0:
                raise ConfigurationError(
                    f"Quota must be non-negative for tier {tier.name.value}: {tier.quota}",
                    config_key=f"keep.{tier.name.value}",
                )
            seen.add(tier.name)

        ordered = tuple(sorted(self.tiers, key=lambda t: TIER_ORDER.index(t.name)))
        object.__setattr__(self, "tiers", ordered)

    @classmethod
    def from_quotas(cls, quotas: Mapping[str | TierName, int | None]) -> "RetentionPolicy":
        """
        Build a policy from a mapping of tier name to quota.

        Missing or ``None`` quotas disable a tier.

        Raises:
            ConfigurationError: On unknown tier names or negative quotas
        """
        tiers = []
        for key, quota in quotas.items():
            try:
                name = key if isinstance(key, TierName) else TierName(str(key).lower())
            except ValueError as e:
                raise ConfigurationError(
                    f"Unknown retention tier: {key}",
                    config_key="keep",
                ) from e
            if quota is None:
                continue
            tiers.append(Tier(name=name, quota=int(quota)))
        return cls(tiers=tuple(tiers))

    def quota(self, name: TierName) -> int:
        """Return the quota of a tier, 0 when the tier is absent."""
        for tier in self.tiers:
            if tier.name == name:
                return tier.quota
        return 0

    def to_dict(self) -> dict[str, int]:
        return {tier.name.value: tier.quota for tier in self.tiers}


@dataclass(frozen=True)
class Bucket:
    """Artifacts sharing one bucket key, oldest first."""

    key: str
    members: tuple[Artifact, ...]

    @property
    def representative(self) -> Artifact:
        """The chronologically earliest member."""
        return self.members[0]


@dataclass(frozen=True)
class TierGeneration:
    """The buckets a single tier retained, in chronological order."""

    tier: Tier
    buckets: tuple[Bucket, ...] = ()

    @property
    def retained(self) -> tuple[Artifact, ...]:
        """Every artifact claimed by this tier."""
        return tuple(a for bucket in self.buckets for a in bucket.members)

    @property
    def representatives(self) -> tuple[Artifact, ...]:
        return tuple(bucket.representative for bucket in self.buckets)

    @property
    def bucket_keys(self) -> tuple[str, ...]:
        return tuple(bucket.key for bucket in self.buckets)

    def __len__(self) -> int:
        return len(self.buckets)


# Tier name -> generation, present only for tiers with a positive quota.
GenerationMap = dict[TierName, TierGeneration]


@dataclass(frozen=True)
class Classification:
    """Output of one scheduling pass: kept generations and the deletion set."""

    generations: GenerationMap
    deletion: tuple[Artifact, ...] = ()

    def retained(self) -> frozenset[Artifact]:
        """All artifacts claimed by any tier."""
        return frozenset(a for gen in self.generations.values() for a in gen.retained)

    def deletion_set(self) -> frozenset[Artifact]:
        return frozenset(self.deletion)

    def all_artifacts(self) -> frozenset[Artifact]:
        return self.retained() | self.deletion_set()

    def counts(self) -> dict[str, int]:
        """Retained artifacts per tier plus the size of the deletion set."""
        counts = {name.value: len(gen.retained) for name, gen in self.generations.items()}
        counts["delete"] = len(self.deletion)
        return counts

    def bucket_counts(self) -> dict[str, int]:
        """Retained buckets per tier."""
        return {name.value: len(gen) for name, gen in self.generations.items()}
