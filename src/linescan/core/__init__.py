"""Core data model and error kinds for the line-scan pipeline."""

from linescan.core.errors import (
    LinescanError,
    SourceUnavailable,
    InvalidCalibration,
    InvalidControlValue,
)
from linescan.core.types import (
    CHANNELS,
    Mode,
    Point2D,
    LineSegment,
    SampleSet,
    AccumulatedTrace,
    CalibrationPoint,
    CalibrationSet,
    AccumulationProgress,
    TickKind,
    TickResult,
)

__all__ = [
    'LinescanError',
    'SourceUnavailable',
    'InvalidCalibration',
    'InvalidControlValue',
    'CHANNELS',
    'Mode',
    'Point2D',
    'LineSegment',
    'SampleSet',
    'AccumulatedTrace',
    'CalibrationPoint',
    'CalibrationSet',
    'AccumulationProgress',
    'TickKind',
    'TickResult',
]
