"""Error kinds raised by the line-scan core.

None of these are fatal. Sampling errors skip the current tick;
configuration errors are rejected where the value is set and the previous
valid state is kept.

Key distinction:
- SourceUnavailable: no readable frame this tick (skip and continue)
- InvalidCalibration / InvalidControlValue: bad user input (reject and retain)
- ContractViolation (linescan.contracts): pipeline bug (programmer error)
"""


class LinescanError(Exception):
    """Base class for recoverable line-scan errors."""
    pass


class SourceUnavailable(LinescanError):
    """Raised when the frame buffer is missing or cannot be read.

    The tick that hit it is skipped. No SampleSet is produced and the
    accumulation state is left untouched.
    """
    pass


class InvalidCalibration(LinescanError, ValueError):
    """Raised when a calibration edit would make the set unusable.

    Covers fewer than two points and two points sharing one position
    (a zero-width interpolation interval).
    """
    pass


class InvalidControlValue(LinescanError, ValueError):
    """Raised for a non-numeric or out-of-range control value.

    Frame count, y-offset and rotation are checked at the boundary. The
    previous valid value is retained.
    """
    pass
