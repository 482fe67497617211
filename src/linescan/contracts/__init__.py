"""Pipeline contracts: fail-fast enforcement of stage invariants.

Contracts fail immediately when a stage does not produce its promised
invariants.

Key principle:
- Pydantic validates config correctness
- Boundary setters validate control values (reject and retain)
- Contracts validate pipeline correctness
"""

from linescan.contracts.failure import ContractViolation
from linescan.contracts.base import require
from linescan.contracts.sampling import assert_sampled
from linescan.contracts.accumulation import assert_accumulated

__all__ = [
    "ContractViolation",
    "require",
    "assert_sampled",
    "assert_accumulated",
]
