"""Tests for capacity usage evaluation."""

import pytest
from pydantic import ValidationError

from housekeeper.core.exceptions import InvalidVolumeError
from housekeeper.retention import Thresholds, UsageEvaluator, UsageSnapshot, evaluate
from housekeeper.retention.usage import shadow_fraction, volume_fraction


class TestUsageFractions:
    """Tests for the usage fraction formulas."""

    def test_volume_and_shadow_fractions(self, usage_snapshot):
        """Test fractions for a 75% full volume with 20% shadow use."""
        assert volume_fraction(usage_snapshot) == pytest.approx(0.75)
        assert shadow_fraction(usage_snapshot) == pytest.approx(0.2)

    def test_shadow_limit_capped_by_capacity(self):
        """Test the shadow denominator is the smaller of max and capacity."""
        usage = UsageSnapshot(
            capacity_bytes=1000,
            free_bytes=500,
            shadow_max_bytes=2**63 - 1,
            shadow_used_bytes=250,
        )
        assert shadow_fraction(usage) == pytest.approx(0.25)

    def test_zero_capacity_raises(self):
        """Test a volume without capacity cannot be evaluated."""
        usage = UsageSnapshot(volume_id="C:", capacity_bytes=0, free_bytes=0, shadow_max_bytes=10)
        with pytest.raises(InvalidVolumeError) as exc_info:
            volume_fraction(usage)
        assert exc_info.value.details == {"volume_id": "C:", "axis": "volume"}

    def test_zero_shadow_limit_raises(self):
        """Test a zero shadow storage limit cannot be evaluated."""
        usage = UsageSnapshot(capacity_bytes=1000, free_bytes=10, shadow_max_bytes=0)
        with pytest.raises(InvalidVolumeError) as exc_info:
            shadow_fraction(usage)
        assert exc_info.value.axis == "shadow"

    def test_fractions_within_bounds(self):
        """Test consistent figures give fractions in [0, 1]."""
        for free, used in [(0, 0), (1000, 500), (500, 1000), (1000, 0)]:
            usage = UsageSnapshot(
                capacity_bytes=1000, free_bytes=free, shadow_max_bytes=1000, shadow_used_bytes=used
            )
            result = evaluate(usage)
            assert 0.0 <= result.volume_fraction <= 1.0
            assert 0.0 <= result.shadow_fraction <= 1.0


class TestEvaluate:
    """Tests for threshold evaluation."""

    def test_volume_threshold_exceeded(self, usage_snapshot):
        """Test 75% volume use exceeds a 0.7 threshold."""
        result = evaluate(usage_snapshot, Thresholds(volume=0.7))
        assert result.exceeded is True
        assert result.breached == ["volume"]
        assert result.volume_fraction == pytest.approx(0.75)
        assert result.shadow_fraction == pytest.approx(0.2)

    def test_threshold_must_be_strictly_exceeded(self, usage_snapshot):
        """Test usage equal to the threshold is not a breach."""
        result = evaluate(usage_snapshot, Thresholds(volume=0.75, shadow=0.2))
        assert result.exceeded is False
        assert result.breached == []

    def test_both_axes_breached(self, usage_snapshot):
        """Test both axes are reported when both exceed their limits."""
        result = evaluate(usage_snapshot, Thresholds(volume=0.5, shadow=0.1))
        assert result.breached == ["volume", "shadow"]

    def test_no_thresholds_never_exceeded(self, usage_snapshot):
        """Test absent thresholds disable the checks."""
        result = evaluate(usage_snapshot)
        assert result.exceeded is False

    def test_evaluator_binds_thresholds(self, usage_snapshot, thresholds):
        """Test UsageEvaluator applies its configured thresholds."""
        result = UsageEvaluator(thresholds).evaluate(usage_snapshot)
        assert result.exceeded is True
        assert result.breached == ["volume"]
        assert result.snapshot == usage_snapshot

    def test_negative_threshold_rejected(self):
        """Test thresholds must be non-negative."""
        with pytest.raises(ValidationError):
            Thresholds(volume=-0.1)
