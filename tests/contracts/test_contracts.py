"""Tests for pipeline contracts.

These tests verify that contracts are enforced at stage boundaries.
They test contract violations directly, without defensive logic downstream.
"""

from datetime import datetime, timezone

import numpy as np
import pytest

pytestmark = pytest.mark.unit

from linescan.contracts import (
    ContractViolation,
    assert_accumulated,
    assert_sampled,
    require,
)
from linescan.core.types import AccumulatedTrace, SampleSet

TS = datetime(2025, 1, 1, tzinfo=timezone.utc)


def sample(positions, n=None):
    n = len(positions) if n is None else n
    values = np.ones(n)
    return SampleSet(timestamp=TS, positions=positions, red=values, green=values,
                     blue=values, intensity=values, line_length=1.0)


def trace(frame_count, n=3, channel_len=None):
    values = np.ones(n if channel_len is None else channel_len)
    return AccumulatedTrace(timestamp=TS, positions=np.linspace(0, 1, n), red=values,
                            green=np.ones(n), blue=np.ones(n), intensity=np.ones(n),
                            line_length=2.0, frame_count=frame_count)


class TestRequire:
    """Base enforcement."""

    def test_true_condition_passes(self):
        require(True, "never raised")

    def test_false_condition_raises(self):
        with pytest.raises(ContractViolation, match="broken"):
            require(False, "broken")

    def test_contract_violation_is_not_value_error(self):
        assert not issubclass(ContractViolation, ValueError)
        assert issubclass(ContractViolation, RuntimeError)


class TestSamplingContract:
    """Test sampling stage contract."""

    def test_sampling_contract_passes_with_valid_sample(self):
        """Sampling contract passes for normalized increasing positions."""
        # Should not raise
        assert_sampled(sample(np.linspace(0, 1, 11)))

    def test_sampling_contract_fails_for_non_sample(self):
        with pytest.raises(ContractViolation, match="expected SampleSet"):
            assert_sampled({"positions": [0, 1]})

    def test_sampling_contract_fails_for_empty_sample(self):
        with pytest.raises(ContractViolation, match="at least one sample"):
            assert_sampled(sample(np.array([]), n=0))

    def test_sampling_contract_fails_for_misaligned_channel(self):
        """Channel lengths must match positions."""
        with pytest.raises(ContractViolation, match="'red' has shape"):
            assert_sampled(sample(np.linspace(0, 1, 5), n=4))

    def test_sampling_contract_fails_for_positions_outside_unit_range(self):
        with pytest.raises(ContractViolation, match="within \\[0, 1\\]"):
            assert_sampled(sample(np.array([0.0, 0.5, 1.5])))

    def test_sampling_contract_fails_for_unordered_positions(self):
        with pytest.raises(ContractViolation, match="strictly increasing"):
            assert_sampled(sample(np.array([0.0, 0.7, 0.5, 1.0])))


class TestAccumulationContract:
    """Test accumulation stage contract."""

    def test_accumulation_contract_passes(self):
        # Should not raise
        assert_accumulated(trace(frame_count=5), expected_frames=5)

    def test_accumulation_contract_fails_for_wrong_frame_count(self):
        with pytest.raises(ContractViolation, match="frame_count=4, expected 5"):
            assert_accumulated(trace(frame_count=4), expected_frames=5)

    def test_accumulation_contract_fails_for_plain_sample(self):
        with pytest.raises(ContractViolation, match="expected AccumulatedTrace"):
            assert_accumulated(sample(np.linspace(0, 1, 3)), expected_frames=1)

    def test_accumulation_contract_fails_for_short_channel(self):
        with pytest.raises(ContractViolation, match="'red' length 2"):
            assert_accumulated(trace(frame_count=2, channel_len=2), expected_frames=2)
