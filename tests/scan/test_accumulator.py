import numpy as np
import pytest

from linescan.contracts import ContractViolation
from linescan.core.errors import InvalidControlValue
from linescan.core.types import AccumulatedTrace
from linescan.scan.accumulator import (
    AccumulatorState,
    FrameAccumulator,
    parse_frame_count,
    sum_sample_sets,
)
from tests.helpers.fake_frames import make_sample_set

pytestmark = pytest.mark.unit


def test_nothing_emitted_before_target():
    acc = FrameAccumulator(3)
    assert acc.state == AccumulatorState.IDLE

    assert acc.push(make_sample_set(1.0, n=4)) is None
    assert acc.state == AccumulatorState.COLLECTING
    assert acc.push(make_sample_set(2.0, n=4)) is None
    assert acc.buffered == 2


def test_nth_push_emits_channel_sums():
    acc = FrameAccumulator(3)
    acc.push(make_sample_set(1.0, n=4))
    acc.push(make_sample_set(2.0, n=4))
    trace = acc.push(make_sample_set(3.0, n=4))

    assert isinstance(trace, AccumulatedTrace)
    assert trace.frame_count == 3
    for name in ("red", "green", "blue", "intensity"):
        np.testing.assert_array_equal(trace.channel(name), np.full(4, 6.0))
    np.testing.assert_array_equal(trace.mean("red"), np.full(4, 2.0))


def test_buffer_resets_after_emit():
    acc = FrameAccumulator(2)
    acc.push(make_sample_set(1.0, n=3))
    acc.push(make_sample_set(1.0, n=3))

    assert acc.buffered == 0
    assert acc.state == AccumulatorState.IDLE
    assert acc.push(make_sample_set(5.0, n=3)) is None
    assert acc.progress.buffered == 1


def test_target_of_one_emits_every_push():
    acc = FrameAccumulator(1)
    trace = acc.push(make_sample_set(7.0, n=2))
    assert trace.frame_count == 1
    np.testing.assert_array_equal(trace.red, [7.0, 7.0])


def test_changing_target_discards_buffer():
    acc = FrameAccumulator(10)
    for _ in range(3):
        acc.push(make_sample_set(1.0, n=2))

    acc.target_frame_count = 5
    assert acc.buffered == 0
    assert str(acc.progress) == "0/5"

    results = [acc.push(make_sample_set(1.0, n=2)) for _ in range(5)]
    assert all(r is None for r in results[:4])
    assert results[4].frame_count == 5


def test_invalid_target_keeps_buffer_and_target():
    acc = FrameAccumulator(4)
    acc.push(make_sample_set(1.0, n=2))

    with pytest.raises(InvalidControlValue):
        acc.target_frame_count = 0

    assert acc.target_frame_count == 4
    assert acc.buffered == 1


def test_positions_and_length_come_from_first_frame():
    first = make_sample_set(1.0, n=3)
    trace = sum_sample_sets([first, make_sample_set(1.0, n=3)])
    np.testing.assert_array_equal(trace.positions, first.positions)
    assert trace.line_length == first.line_length


def test_length_mismatch_sums_overlap():
    trace = sum_sample_sets([
        make_sample_set(1.0, n=3),
        make_sample_set(1.0, n=5),
        make_sample_set(1.0, n=2),
    ])
    assert len(trace) == 3
    np.testing.assert_array_equal(trace.red, [3.0, 3.0, 2.0])


def test_sum_of_empty_buffer_is_contract_violation():
    with pytest.raises(ContractViolation):
        sum_sample_sets([])


@pytest.mark.parametrize("value, expected", [(5, 5), ("5", 5), (" 12 ", 12), (3.0, 3), (np.int64(2), 2)])
def test_parse_frame_count_accepts(value, expected):
    assert parse_frame_count(value) == expected


@pytest.mark.parametrize("value", [0, -1, 2.5, "abc", "", True, None, [3]])
def test_parse_frame_count_rejects(value):
    with pytest.raises(InvalidControlValue):
        parse_frame_count(value)
