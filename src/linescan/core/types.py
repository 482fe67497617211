"""Data model for the line-scan pipeline.

Geometry (Point2D, LineSegment), per-frame sampling output (SampleSet),
accumulated output (AccumulatedTrace), calibration anchors and the typed
result of one coordinator tick.

Channel arrays are stored as read-only float64 numpy arrays. Positions are
normalized distances along the line in [0, 1].
"""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

import numpy as np

__all__ = [
    'CHANNELS',
    'Mode',
    'Point2D',
    'LineSegment',
    'SampleSet',
    'AccumulatedTrace',
    'CalibrationPoint',
    'CalibrationSet',
    'DEFAULT_CALIBRATION_POINTS',
    'AccumulationProgress',
    'TickKind',
    'TickResult',
]

CHANNELS = ("red", "green", "blue", "intensity")


class Mode(str, Enum):
    """Trace output mode."""
    LIVE = "live"
    ACCUMULATING = "accumulate"


@dataclass(frozen=True)
class Point2D:
    """Pixel coordinate (x to the right, y down)."""
    x: float
    y: float

    @classmethod
    def from_any(cls, value) -> "Point2D":
        """Build from a Point2D, an ``(x, y)`` pair or an ``{"x", "y"}`` dict."""
        if isinstance(value, Point2D):
            return value
        if isinstance(value, dict):
            return cls(float(value["x"]), float(value["y"]))
        x, y = value
        return cls(float(x), float(y))

    def as_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class LineSegment:
    """Straight segment between two pixel coordinates."""
    start: Point2D
    end: Point2D

    @property
    def length(self) -> float:
        return math.hypot(self.end.x - self.start.x, self.end.y - self.start.y)

    @property
    def midpoint(self) -> Point2D:
        return Point2D((self.start.x + self.end.x) / 2, (self.start.y + self.end.y) / 2)


def _readonly(values) -> np.ndarray:
    arr = np.array(values, dtype=np.float64)
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class SampleSet:
    """One frame's line-scan result.

    ``positions`` and the four channel arrays are index-aligned and have the
    same length (at least one). Structural checks live in
    :func:`linescan.contracts.assert_sampled`; the dataclass only coerces.
    """
    timestamp: datetime
    positions: np.ndarray
    red: np.ndarray
    green: np.ndarray
    blue: np.ndarray
    intensity: np.ndarray
    line_length: float

    def __post_init__(self):
        for name in ("positions",) + CHANNELS:
            object.__setattr__(self, name, _readonly(getattr(self, name)))
        object.__setattr__(self, "line_length", float(self.line_length))

    def __len__(self) -> int:
        return len(self.positions)

    def channel(self, name: str) -> np.ndarray:
        """Return one channel array by name."""
        if name not in CHANNELS:
            raise KeyError(f"Unknown channel '{name}', expected one of {CHANNELS}")
        return getattr(self, name)


@dataclass(frozen=True, eq=False)
class AccumulatedTrace(SampleSet):
    """Channel-wise SUM of ``frame_count`` consecutive SampleSets.

    Values are sums, not means. Use :meth:`mean` to normalize.
    """
    frame_count: int

    def mean(self, name: str) -> np.ndarray:
        """Per-frame mean of one channel."""
        return self.channel(name) / self.frame_count


@dataclass(frozen=True)
class CalibrationPoint:
    """Anchor pairing a normalized line position with a wavelength (nm)."""
    position: float
    wavelength: float

    @classmethod
    def from_any(cls, value) -> "CalibrationPoint":
        """Build from a CalibrationPoint, a ``(position, wavelength)`` pair or a dict."""
        if isinstance(value, CalibrationPoint):
            return value
        if isinstance(value, dict):
            return cls(float(value["position"]), float(value["wavelength"]))
        position, wavelength = value
        return cls(float(position), float(wavelength))

    def as_dict(self) -> dict:
        return {"position": self.position, "wavelength": self.wavelength}


DEFAULT_CALIBRATION_POINTS = (
    CalibrationPoint(0.25, 450.0),
    CalibrationPoint(0.75, 650.0),
)


@dataclass(frozen=True)
class CalibrationSet:
    """Calibration points plus the display flags that go with them.

    Points may be in any order; the mapper sorts them.
    """
    points: Tuple[CalibrationPoint, ...] = DEFAULT_CALIBRATION_POINTS
    enabled: bool = False
    flip_x_axis: bool = False


@dataclass(frozen=True)
class AccumulationProgress:
    """Frames buffered toward the current accumulation target."""
    buffered: int
    target: int

    @property
    def fraction(self) -> float:
        return self.buffered / self.target if self.target else 0.0

    def __str__(self) -> str:
        return f"{self.buffered}/{self.target}"


class TickKind(str, Enum):
    """Outcome of one coordinator tick."""
    LIVE = "live"                # raw SampleSet emitted
    ACCUMULATED = "accumulated"  # AccumulatedTrace emitted
    COLLECTING = "collecting"    # frame buffered, nothing emitted yet
    SKIPPED = "skipped"          # no sample taken, state untouched


@dataclass(frozen=True)
class TickResult:
    """Typed result of :meth:`PipelineCoordinator.tick`."""
    kind: TickKind
    progress: AccumulationProgress
    trace: Optional[SampleSet] = None
    line: Optional[LineSegment] = None
    reason: Optional[str] = None

    @property
    def emitted(self) -> bool:
        return self.kind in (TickKind.LIVE, TickKind.ACCUMULATED)
