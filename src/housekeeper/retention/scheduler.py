"""
Generational retention scheduler.

Partitions a set of timestamped artifacts into per-tier generations and a
deletion set. Each enabled tier, in fixed coarse-to-fine order, groups the
remaining pool into buckets, keeps the most recent ``quota`` buckets, and
hands every artifact of the other buckets down to the next tier. Whatever
no tier claims is deleted.
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from housekeeper.core.exceptions import InvalidArtifactError
from housekeeper.retention.models import (
    Artifact,
    Bucket,
    Classification,
    GenerationMap,
    RetentionPolicy,
    Tier,
    TierGeneration,
)

logger = logging.getLogger(__name__)


def _timestamp_of(artifact: Artifact) -> datetime:
    """Return the artifact's creation time, parsing ISO-8601 strings."""
    value = artifact.created_at
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError as e:
            raise InvalidArtifactError(
                f"Unparseable timestamp for artifact {artifact.id}",
                artifact_id=artifact.id,
                value=value,
            ) from e
    raise InvalidArtifactError(
        f"Missing or invalid timestamp for artifact {artifact.id}",
        artifact_id=artifact.id,
        value=value,
    )


def _sorted_pool(pool: list[tuple[datetime, Artifact]]) -> list[tuple[datetime, Artifact]]:
    """Sort oldest first; the artifact id breaks timestamp ties."""
    try:
        return sorted(pool, key=lambda item: (item[0], item[1].id))
    except TypeError as e:
        # naive and aware datetimes cannot be ordered together
        raise InvalidArtifactError(
            "Artifact timestamps are not mutually comparable",
            details={"error": str(e)},
        ) from e


def _take_tier(
    tier: Tier,
    pool: list[tuple[datetime, Artifact]],
) -> tuple[TierGeneration, list[tuple[datetime, Artifact]]]:
    """
    Apply a single tier to the pool.

    Returns:
        Tuple of (generation retained by the tier, pool for the next tier)
    """
    grouped: dict[str, list[tuple[datetime, Artifact]]] = {}
    for item in _sorted_pool(pool):
        grouped.setdefault(tier.bucket_key(item[0]), []).append(item)

    keys = sorted(grouped)
    selected = set(keys[-tier.quota:]) if tier.quota > 0 else set()

    buckets = []
    remain = []
    for key in keys:
        if key in selected:
            buckets.append(Bucket(key=key, members=tuple(a for _, a in grouped[key])))
        else:
            remain.extend(grouped[key])

    generation = TierGeneration(tier=tier, buckets=tuple(buckets))
    logger.debug(
        f"Tier {tier.name.value}: {len(keys)} buckets, kept {len(buckets)} "
        f"({len(generation.retained)} artifacts), passed {len(remain)}"
    )
    return generation, remain


def classify(artifacts: Iterable[Artifact], policy: RetentionPolicy) -> Classification:
    """
    Classify artifacts into retained generations and a deletion set.

    Pure and deterministic: the same inputs always give the same result.

    Args:
        artifacts: Artifacts to classify; duplicates by id collapse
        policy: Retention policy with per-tier quotas

    Returns:
        Classification holding the generation map and deletion set

    Raises:
        InvalidArtifactError: If a timestamp cannot be parsed or compared
    """
    unique: dict[str, Artifact] = {}
    for artifact in artifacts:
        unique.setdefault(artifact.id, artifact)

    pool = [(_timestamp_of(a), a) for a in unique.values()]
    pool = _sorted_pool(pool)

    generations: GenerationMap = {}
    for tier in policy.tiers:
        if not tier.enabled:
            continue
        generation, pool = _take_tier(tier, pool)
        generations[tier.name] = generation

    deletion = tuple(a for _, a in _sorted_pool(pool))
    return Classification(generations=generations, deletion=deletion)


class RetentionScheduler:
    """Binds a retention policy to the classification function."""

    def __init__(self, policy: RetentionPolicy):
        self.policy = policy

    def classify(self, artifacts: Iterable[Artifact]) -> Classification:
        classification = classify(artifacts, self.policy)
        logger.info(
            "Classified artifacts: "
            + ", ".join(f"{k}={v}" for k, v in classification.counts().items())
        )
        return classification
