"""Frame accumulation: sum N consecutive SampleSets into one trace.

State machine::

    Idle --push--> Collecting --push (N-th)--> Emitting --> Collecting (reset)

The emitted trace holds channel SUMS (not means). Positions and line length
are copied from the first SampleSet of the window; samples are not
realigned if the line geometry changes inside a window.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

import numpy as np

from linescan.contracts import require
from linescan.core.errors import InvalidControlValue
from linescan.core.types import CHANNELS, AccumulatedTrace, AccumulationProgress, SampleSet

__all__ = ['FrameAccumulator', 'AccumulatorState', 'sum_sample_sets', 'parse_frame_count']

logger = logging.getLogger(__name__)


class AccumulatorState(str, Enum):
    IDLE = "idle"
    COLLECTING = "collecting"


def parse_frame_count(value) -> int:
    """Validate an accumulation target coming from a control.

    Accepts positive integers and integer strings (``"5"``). Rejects bools,
    non-integral floats, non-numeric strings and values below 1.

    Raises
    ------
    InvalidControlValue
    """
    if isinstance(value, bool):
        raise InvalidControlValue(f"Frame count must be an integer, got {value!r}")
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise InvalidControlValue(f"Frame count must be an integer, got {value!r}") from None
    elif isinstance(value, (float, np.floating)):
        if not float(value).is_integer():
            raise InvalidControlValue(f"Frame count must be an integer, got {value!r}")
        value = int(value)
    elif not isinstance(value, (int, np.integer)):
        raise InvalidControlValue(f"Frame count must be an integer, got {value!r}")

    value = int(value)
    if value < 1:
        raise InvalidControlValue(f"Frame count must be >= 1, got {value}")
    return value


def sum_sample_sets(frames: List[SampleSet]) -> AccumulatedTrace:
    """Channel-wise sum of ``frames`` using the first one as template.

    Frames longer than the template contribute only their first
    ``len(template)`` samples; shorter frames contribute to their own length.

    Raises
    ------
    ContractViolation
        If ``frames`` is empty. The accumulator never calls this with an
        empty buffer.
    """
    require(len(frames) > 0, "Accumulation contract violated: cannot sum an empty frame buffer")

    template = frames[0]
    n = len(template)
    sums = {name: np.zeros(n, dtype=np.float64) for name in CHANNELS}

    for frame in frames:
        m = min(n, len(frame))
        if len(frame) != n:
            logger.debug("Frame length %d differs from template length %d; summing first %d",
                         len(frame), n, m)
        for name in CHANNELS:
            sums[name][:m] += frame.channel(name)[:m]

    return AccumulatedTrace(
        timestamp=datetime.now(timezone.utc),
        positions=template.positions,
        red=sums["red"],
        green=sums["green"],
        blue=sums["blue"],
        intensity=sums["intensity"],
        line_length=template.line_length,
        frame_count=len(frames),
    )


class FrameAccumulator:
    """Rolling buffer that emits one summed trace every ``target_frame_count`` pushes.

    Parameters
    ----------
    target_frame_count : int
        Window size N (>= 1).

    Notes
    -----
    Not thread-safe on its own; the coordinator serializes access.

    Examples
    --------
    >>> acc = FrameAccumulator(3)
    >>> acc.push(s1), acc.push(s2)
    (None, None)
    >>> trace = acc.push(s3)
    >>> trace.frame_count
    3
    """

    def __init__(self, target_frame_count: int = 10):
        self._target = parse_frame_count(target_frame_count)
        self._buffer: List[SampleSet] = []

    @property
    def target_frame_count(self) -> int:
        return self._target

    @target_frame_count.setter
    def target_frame_count(self, value) -> None:
        new_target = parse_frame_count(value)
        dropped = len(self._buffer)
        self._target = new_target
        self.reset()
        logger.info("Accumulation target set to %d frames (discarded %d buffered)", new_target, dropped)

    @property
    def state(self) -> AccumulatorState:
        return AccumulatorState.COLLECTING if self._buffer else AccumulatorState.IDLE

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    @property
    def progress(self) -> AccumulationProgress:
        return AccumulationProgress(len(self._buffer), self._target)

    def reset(self) -> None:
        """Discard buffered frames. Partial sums are never flushed."""
        self._buffer.clear()

    def push(self, sample: SampleSet) -> Optional[AccumulatedTrace]:
        """Add one SampleSet; return the summed trace when the window is full."""
        self._buffer.append(sample)

        if len(self._buffer) < self._target:
            return None

        trace = sum_sample_sets(self._buffer)
        self._buffer = []
        logger.debug("Accumulated %d frames into trace of %d samples", trace.frame_count, len(trace))
        return trace
