"""Accumulation stage contract.

Enforces the guarantee that an emitted AccumulatedTrace matches its batch:
frame count equals the batch size and channels keep the template length.
"""

from linescan.contracts.base import require
from linescan.core.types import CHANNELS, AccumulatedTrace


def assert_accumulated(trace: AccumulatedTrace, expected_frames: int) -> None:
    """Enforce accumulation stage contract.

    Parameters
    ----------
    trace : AccumulatedTrace
        Output from FrameAccumulator.push()

    expected_frames : int
        Accumulation target the trace was produced for.

    Raises
    ------
    ContractViolation
        If frame count or channel lengths are wrong.
    """
    require(
        isinstance(trace, AccumulatedTrace),
        f"Accumulation contract violated: output is {type(trace)}, expected AccumulatedTrace"
    )
    require(
        trace.frame_count == expected_frames,
        f"Accumulation contract violated: frame_count={trace.frame_count}, expected {expected_frames}"
    )

    n = len(trace.positions)
    for name in CHANNELS:
        require(
            len(trace.channel(name)) == n,
            f"Accumulation contract violated: '{name}' length {len(trace.channel(name))} != {n} positions"
        )
