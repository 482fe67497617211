"""Position-to-wavelength calibration and display-axis helpers.

Calibration is a display transform only. Traces always carry raw normalized
positions; these functions map them to wavelengths (nm) for labels and
export, and handle the flipped display axis.

Mapping rules:
- calibration disabled, or fewer than two usable points: identity
- inside the calibrated range: linear interpolation between the bracketing pair
- below the first point: extrapolate with the slope of the first two points
- above the last point: extrapolate with the slope of the last two points
"""

import logging
import math
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from linescan.core.errors import InvalidCalibration
from linescan.core.types import CalibrationPoint, CalibrationSet

__all__ = [
    'POSITION_DECIMALS',
    'usable_points',
    'validate_calibration_points',
    'edit_calibration_point',
    'position_to_wavelength',
    'positions_to_wavelengths',
    'flip_position',
    'display_positions',
    'nearest_position_index',
]

logger = logging.getLogger(__name__)

POSITION_DECIMALS = 3


def usable_points(points: Iterable) -> List[CalibrationPoint]:
    """Sorted points the mapper can interpolate with.

    Points with a non-finite position or wavelength are dropped, and of two
    points sharing a position only the first one given is kept, so no
    interval has zero width.
    """
    seen = set()
    kept = []
    for raw in points:
        point = CalibrationPoint.from_any(raw)
        if not (math.isfinite(point.position) and math.isfinite(point.wavelength)):
            continue
        if point.position in seen:
            continue
        seen.add(point.position)
        kept.append(point)
    return sorted(kept, key=lambda p: p.position)


def validate_calibration_points(points: Iterable) -> Tuple[CalibrationPoint, ...]:
    """Check a full point list before it is applied.

    Parameters
    ----------
    points : iterable
        CalibrationPoints, ``(position, wavelength)`` pairs or dicts.

    Returns
    -------
    tuple of CalibrationPoint
        Points in the order given.

    Raises
    ------
    InvalidCalibration
        Fewer than two points, a non-numeric or non-finite value, a position
        outside [0, 1], or two points with the same position.
    """
    try:
        parsed = tuple(CalibrationPoint.from_any(p) for p in points)
    except (TypeError, ValueError, KeyError) as e:
        raise InvalidCalibration(f"Malformed calibration point: {e}") from e

    if len(parsed) < 2:
        raise InvalidCalibration(f"At least 2 calibration points required, got {len(parsed)}")

    positions = set()
    for point in parsed:
        if not (math.isfinite(point.position) and math.isfinite(point.wavelength)):
            raise InvalidCalibration(f"Non-finite calibration point: {point}")
        if not 0.0 <= point.position <= 1.0:
            raise InvalidCalibration(f"Calibration position {point.position} outside [0, 1]")
        if point.position in positions:
            raise InvalidCalibration(
                f"Duplicate calibration position {point.position}: zero-width interval"
            )
        positions.add(point.position)

    return parsed


def edit_calibration_point(points: Sequence[CalibrationPoint], index: int,
                           position: Optional[float] = None,
                           wavelength: Optional[float] = None) -> Tuple[CalibrationPoint, ...]:
    """Return a copy of ``points`` with one point changed.

    Positions are rounded to three decimals before the check. The edit is
    rejected (nothing returned, input untouched) if the result is invalid.

    Raises
    ------
    InvalidCalibration
        Bad index, non-numeric value, or the edited set fails
        :func:`validate_calibration_points` (e.g. duplicate position).
    """
    if not 0 <= index < len(points):
        raise InvalidCalibration(f"No calibration point at index {index} (have {len(points)})")

    current = points[index]
    try:
        new_position = current.position if position is None else round(float(position), POSITION_DECIMALS)
        new_wavelength = current.wavelength if wavelength is None else float(wavelength)
    except (TypeError, ValueError) as e:
        raise InvalidCalibration(f"Calibration value is not numeric: {e}") from e

    edited = list(points)
    edited[index] = CalibrationPoint(new_position, new_wavelength)
    return validate_calibration_points(edited)


def _interp(values: np.ndarray, points: List[CalibrationPoint]) -> np.ndarray:
    xp = np.array([p.position for p in points], dtype=np.float64)
    fp = np.array([p.wavelength for p in points], dtype=np.float64)

    result = np.interp(values, xp, fp)

    below = values < xp[0]
    if np.any(below):
        slope = (fp[1] - fp[0]) / (xp[1] - xp[0])
        result[below] = fp[0] + slope * (values[below] - xp[0])

    above = values > xp[-1]
    if np.any(above):
        slope = (fp[-1] - fp[-2]) / (xp[-1] - xp[-2])
        result[above] = fp[-1] + slope * (values[above] - xp[-1])

    return result


def positions_to_wavelengths(positions, calibration: CalibrationSet) -> np.ndarray:
    """Vectorized :func:`position_to_wavelength`.

    Returns a new float64 array; the input positions are not modified.
    """
    values = np.array(positions, dtype=np.float64, ndmin=1)

    if not calibration.enabled:
        return values

    points = usable_points(calibration.points)
    if len(points) < 2:
        logger.debug("Calibration has %d usable points; using identity", len(points))
        return values

    return _interp(values, points)


def position_to_wavelength(position: float, calibration: CalibrationSet) -> float:
    """Map one normalized position to a wavelength in nm.

    Parameters
    ----------
    position : float
        Raw (unflipped) normalized position along the line.
    calibration : CalibrationSet
        Points and enable flag. Points may be in any order.

    Returns
    -------
    float
        Wavelength, or ``position`` unchanged when calibration is disabled
        or unusable.

    Examples
    --------
    >>> cal = CalibrationSet(((0.25, 450.0), (0.75, 650.0)), enabled=True)
    >>> position_to_wavelength(0.5, cal)
    550.0
    >>> position_to_wavelength(0.0, cal)
    350.0
    """
    return float(positions_to_wavelengths([position], calibration)[0])


def flip_position(position):
    """Mirror a normalized position for display (``1 - position``)."""
    return 1.0 - position


def display_positions(positions, flip: bool) -> np.ndarray:
    """Positions as drawn on the x axis. Stored data is never flipped."""
    values = np.array(positions, dtype=np.float64)
    return flip_position(values) if flip else values


def nearest_position_index(positions, display_x: float, flip: bool = False) -> int:
    """Index of the sample nearest to a cursor at display position ``display_x``."""
    values = np.asarray(positions, dtype=np.float64)
    if values.size == 0:
        raise ValueError("No positions to search")
    target = flip_position(display_x) if flip else display_x
    return int(np.argmin(np.abs(values - target)))
