"""Sampling stage contract.

Enforces the guarantee that a SampleSet is index-aligned and that its
positions are normalized and strictly increasing.
"""

import numpy as np

from linescan.contracts.base import require
from linescan.core.types import CHANNELS, SampleSet


def assert_sampled(sample: SampleSet) -> None:
    """Enforce sampling stage contract.

    Called after LineSampler.sample(). Checks structure only, not the
    pixel values themselves.

    Parameters
    ----------
    sample : SampleSet
        Output from the sampler.

    Raises
    ------
    ContractViolation
        If any invariant is violated.
    """
    require(
        isinstance(sample, SampleSet),
        f"Sampling contract violated: output is {type(sample)}, expected SampleSet"
    )

    n = len(sample.positions)
    require(n >= 1, "Sampling contract violated: at least one sample expected")

    for name in CHANNELS:
        values = sample.channel(name)
        require(
            values.ndim == 1 and len(values) == n,
            f"Sampling contract violated: '{name}' has shape {values.shape}, expected ({n},)"
        )

    positions = sample.positions
    require(
        bool(positions[0] >= 0.0 and positions[-1] <= 1.0),
        f"Sampling contract violated: positions span [{positions[0]}, {positions[-1]}], expected within [0, 1]"
    )
    require(
        bool(np.all(np.diff(positions) > 0)),
        "Sampling contract violated: positions must be strictly increasing"
    )
