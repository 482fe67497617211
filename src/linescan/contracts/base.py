"""Base contract enforcement utility.

require() is the single enforcement mechanism for all contracts.
"""

from linescan.contracts.failure import ContractViolation


def require(condition: bool, message: str) -> None:
    """Enforce a pipeline contract.

    Called at stage boundaries to verify the preceding stage produced the
    guaranteed invariants. No recovery, no fallback.

    Parameters
    ----------
    condition : bool
        The invariant that must be true. If False, ContractViolation is raised.

    message : str
        Error message explaining the contract violation.

    Raises
    ------
    ContractViolation
        If condition is False.

    Examples
    --------
    >>> require(len(sample) >= 1, "Sampling contract: at least one sample expected")
    """
    if not condition:
        raise ContractViolation(message)
