"""Failure type for contract violations.

Contracts fail fast and loud. Every violation raises the same exception
type so callers can tell pipeline bugs apart from recoverable line-scan
errors.
"""


class ContractViolation(RuntimeError):
    """Raised when a pipeline contract is violated.

    This indicates a bug in pipeline logic, not bad user input or an
    unreadable frame. A stage did not produce the invariants it promised.

    Key distinction:
    - ValueError: User/control error (InvalidControlValue, InvalidCalibration)
    - SourceUnavailable: Frame could not be read (tick skipped)
    - ContractViolation: Pipeline bug (programmer error)
    """
    pass
