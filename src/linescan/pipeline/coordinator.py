"""Pipeline coordinator: one tick per frame, controls applied between ticks.

The coordinator owns the line parameters, the accumulation state and the
calibration set. Each tick recomputes the effective line, samples the
frame, and either emits the SampleSet (live mode) or feeds the accumulator
(accumulate mode). Control changes and ticks are serialized by a lock, so
a tick never sees a half-applied update.
"""

import logging
import math
import threading
from typing import Iterable, List, Optional, Union

from linescan.contracts import assert_accumulated, assert_sampled
from linescan.core.errors import InvalidCalibration, InvalidControlValue, SourceUnavailable
from linescan.core.types import (
    AccumulationProgress,
    CalibrationSet,
    LineSegment,
    Mode,
    Point2D,
    TickKind,
    TickResult,
)
from linescan.scan.accumulator import FrameAccumulator
from linescan.scan.calibration import edit_calibration_point, validate_calibration_points
from linescan.scan.geometry import transform_line
from linescan.scan.sampler import LineSampler
from linescan.schemas.internal import InternalConfig
from linescan.schemas.settings import SettingsSnapshot

__all__ = ['PipelineCoordinator']

logger = logging.getLogger(__name__)


def _bounded_float(name: str, value, limit: float) -> float:
    if isinstance(value, bool):
        raise InvalidControlValue(f"{name} must be numeric, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidControlValue(f"{name} must be numeric, got {value!r}") from None
    if not math.isfinite(number):
        raise InvalidControlValue(f"{name} must be finite, got {value!r}")
    if abs(number) > limit:
        raise InvalidControlValue(f"{name} {number} outside ±{limit}")
    return number


def _flag(name: str, value) -> bool:
    if not isinstance(value, bool):
        raise InvalidControlValue(f"{name} must be true or false, got {value!r}")
    return value


class PipelineCoordinator:
    """Drives one line-scan pipeline instance.

    Parameters
    ----------
    config : InternalConfig
        Resolved runtime configuration. Supplies the initial mode, line,
        accumulation target, calibration and the offset/rotation bounds.
    sampler : LineSampler, optional
        Allows injection for testing.

    Notes
    -----
    All public methods are thread-safe. Setters validate at the boundary:
    an invalid value raises (InvalidControlValue or InvalidCalibration),
    is logged at WARNING, and the previous value is kept.

    Examples
    --------
    >>> coordinator = PipelineCoordinator(config)
    >>> coordinator.define_line((0, 0), (10, 0))
    >>> result = coordinator.tick(frame)
    >>> result.kind
    <TickKind.COLLECTING: 'collecting'>
    """

    def __init__(self, config: InternalConfig, sampler: Optional[LineSampler] = None):
        self.config = config
        self._lock = threading.RLock()
        self._sampler = sampler or LineSampler()

        self._y_offset_limit = config.line.y_offset_limit
        self._rotation_limit = config.line.rotation_limit

        self._original_line: Optional[LineSegment] = None
        self._y_offset = 0.0
        self._rotation = 0.0

        self._mode = Mode(config.mode)
        self._accumulator = FrameAccumulator(config.accumulation.target_frame_count)
        self._calibration = CalibrationSet(
            points=validate_calibration_points(config.calibration.points),
            enabled=config.calibration.enabled,
            flip_x_axis=config.calibration.flip_x_axis,
        )

        if config.line.start is not None and config.line.end is not None:
            self.define_line(config.line.start, config.line.end)
            self.set_y_offset(config.line.y_offset)
            self.set_rotation(config.line.rotation)

    # ========================================================================
    # State
    # ========================================================================

    @property
    def original_line(self) -> Optional[LineSegment]:
        return self._original_line

    @property
    def current_line(self) -> Optional[LineSegment]:
        """Effective sample line after offset and rotation, or None."""
        with self._lock:
            if self._original_line is None:
                return None
            return transform_line(self._original_line, self._y_offset, self._rotation)

    @property
    def has_line(self) -> bool:
        return self._original_line is not None

    @property
    def y_offset(self) -> float:
        return self._y_offset

    @property
    def rotation(self) -> float:
        return self._rotation

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def target_frame_count(self) -> int:
        return self._accumulator.target_frame_count

    @property
    def progress(self) -> AccumulationProgress:
        with self._lock:
            return self._accumulator.progress

    @property
    def calibration(self) -> CalibrationSet:
        return self._calibration

    # ========================================================================
    # Line controls
    # ========================================================================

    def define_line(self, start, end) -> LineSegment:
        """Store a new original line; offset and rotation reset to 0.

        ``start`` and ``end`` may be Point2D, ``(x, y)`` or ``{"x", "y"}``.
        """
        try:
            line = LineSegment(Point2D.from_any(start), Point2D.from_any(end))
            coords = (line.start.x, line.start.y, line.end.x, line.end.y)
            if not all(math.isfinite(c) for c in coords):
                raise ValueError(f"non-finite coordinate in {coords}")
        except (TypeError, ValueError, KeyError) as e:
            logger.warning("Rejected line definition %r -> %r: %s", start, end, e)
            raise InvalidControlValue(f"Invalid line endpoints: {e}") from e

        with self._lock:
            self._original_line = line
            self._y_offset = 0.0
            self._rotation = 0.0

        logger.info("Line defined: (%.1f, %.1f) -> (%.1f, %.1f), length %.1f px",
                    line.start.x, line.start.y, line.end.x, line.end.y, line.length)
        return line

    def clear_line(self) -> None:
        """Remove the line. Ticks are skipped and the buffer is discarded."""
        with self._lock:
            self._original_line = None
            self._y_offset = 0.0
            self._rotation = 0.0
            self._accumulator.reset()
        logger.info("Line cleared; extraction stopped")

    def set_y_offset(self, value) -> float:
        try:
            offset = _bounded_float("y_offset", value, self._y_offset_limit)
        except InvalidControlValue as e:
            logger.warning("Rejected y_offset: %s (keeping %.1f)", e, self._y_offset)
            raise
        with self._lock:
            self._y_offset = offset
        logger.info("Line y_offset set to %.1f px", offset)
        return offset

    def set_rotation(self, value) -> float:
        try:
            rotation = _bounded_float("rotation", value, self._rotation_limit)
        except InvalidControlValue as e:
            logger.warning("Rejected rotation: %s (keeping %.1f)", e, self._rotation)
            raise
        with self._lock:
            self._rotation = rotation
        logger.info("Line rotation set to %.1f°", rotation)
        return rotation

    # ========================================================================
    # Accumulation controls
    # ========================================================================

    def set_target_frame_count(self, value) -> int:
        """Change N. The buffer is cleared; collection restarts toward the new N."""
        with self._lock:
            try:
                self._accumulator.target_frame_count = value
            except InvalidControlValue as e:
                logger.warning("Rejected frame count: %s (keeping %d)", e, self._accumulator.target_frame_count)
                raise
            return self._accumulator.target_frame_count

    def set_mode(self, mode: Union[Mode, str]) -> Mode:
        try:
            new_mode = Mode(mode.lower() if isinstance(mode, str) else mode)
        except ValueError:
            logger.warning("Rejected mode %r (keeping %s)", mode, self._mode.value)
            raise InvalidControlValue(f"Unknown mode {mode!r}, expected 'live' or 'accumulate'") from None

        with self._lock:
            if new_mode != self._mode:
                self._mode = new_mode
                self._accumulator.reset()
                logger.info("Mode set to %s; accumulation buffer cleared", new_mode.value)
        return self._mode

    def toggle_accumulation(self) -> Mode:
        with self._lock:
            other = Mode.LIVE if self._mode == Mode.ACCUMULATING else Mode.ACCUMULATING
            return self.set_mode(other)

    # ========================================================================
    # Calibration controls
    # ========================================================================

    def _replace_calibration(self, **changes) -> CalibrationSet:
        current = self._calibration
        self._calibration = CalibrationSet(
            points=changes.get("points", current.points),
            enabled=changes.get("enabled", current.enabled),
            flip_x_axis=changes.get("flip_x_axis", current.flip_x_axis),
        )
        return self._calibration

    def set_calibration_points(self, points: Iterable) -> CalibrationSet:
        try:
            validated = validate_calibration_points(points)
        except InvalidCalibration as e:
            logger.warning("Rejected calibration points: %s", e)
            raise
        with self._lock:
            calibration = self._replace_calibration(points=validated)
        logger.info("Calibration points set: %s",
                    ", ".join(f"{p.position:.3f}->{p.wavelength:g}nm" for p in validated))
        return calibration

    def update_calibration_point(self, index: int, position: Optional[float] = None,
                                 wavelength: Optional[float] = None) -> CalibrationSet:
        """Edit one point; positions are rounded to 3 decimals."""
        with self._lock:
            try:
                edited = edit_calibration_point(self._calibration.points, index, position, wavelength)
            except InvalidCalibration as e:
                logger.warning("Rejected calibration edit at index %d: %s", index, e)
                raise
            calibration = self._replace_calibration(points=edited)
        logger.info("Calibration point %d set to %.3f->%gnm",
                    index, edited[index].position, edited[index].wavelength)
        return calibration

    def set_use_calibration(self, enabled: bool) -> CalibrationSet:
        enabled = _flag("useCalibration", enabled)
        with self._lock:
            calibration = self._replace_calibration(enabled=enabled)
        logger.info("Calibration %s", "enabled" if enabled else "disabled")
        return calibration

    def set_flip_x_axis(self, flip: bool) -> CalibrationSet:
        flip = _flag("flipXAxis", flip)
        with self._lock:
            calibration = self._replace_calibration(flip_x_axis=flip)
        logger.info("X axis flip %s", "on" if flip else "off")
        return calibration

    # ========================================================================
    # Tick
    # ========================================================================

    def tick(self, frame) -> TickResult:
        """Process one frame.

        Returns
        -------
        TickResult
            ``LIVE`` with the SampleSet, ``ACCUMULATED`` with the summed
            trace, ``COLLECTING`` while the window fills, or ``SKIPPED``
            (no line, or the frame was unavailable; state untouched).

        Raises
        ------
        ContractViolation
            If the sampler or accumulator broke its output guarantees.
        """
        with self._lock:
            if self._original_line is None:
                return TickResult(TickKind.SKIPPED, self._accumulator.progress, reason="no line defined")

            line = transform_line(self._original_line, self._y_offset, self._rotation)

            try:
                sample = self._sampler.sample(frame, line)
            except SourceUnavailable as e:
                logger.debug("Tick skipped: %s", e)
                return TickResult(TickKind.SKIPPED, self._accumulator.progress, line=line, reason=str(e))

            assert_sampled(sample)

            if self._mode == Mode.LIVE:
                return TickResult(TickKind.LIVE, self._accumulator.progress, trace=sample, line=line)

            target = self._accumulator.target_frame_count
            trace = self._accumulator.push(sample)
            if trace is None:
                return TickResult(TickKind.COLLECTING, self._accumulator.progress, line=line)

            assert_accumulated(trace, target)
            logger.info("Accumulated trace emitted: %d frames, %d samples", trace.frame_count, len(trace))
            return TickResult(TickKind.ACCUMULATED, AccumulationProgress(target, target),
                              trace=trace, line=line)

    # ========================================================================
    # Settings snapshot
    # ========================================================================

    def snapshot(self) -> dict:
        """Current settings as a camelCase dict (see SettingsSnapshot)."""
        with self._lock:
            line = self._original_line
            snap = SettingsSnapshot(
                calibration_points=[p.as_dict() for p in self._calibration.points],
                use_calibration=self._calibration.enabled,
                flip_x_axis=self._calibration.flip_x_axis,
                line_start=line.start.as_dict() if line else None,
                line_end=line.end.as_dict() if line else None,
                line_y_offset=self._y_offset,
                line_rotation=self._rotation,
                target_frame_count=self._accumulator.target_frame_count,
            )
        return snap.to_payload()

    def restore(self, payload: Union[dict, SettingsSnapshot]) -> List[str]:
        """Apply a (possibly partial) snapshot.

        Absent or null fields leave state unchanged. Each present field goes
        through its normal setter; a field that fails validation is logged
        and skipped, the rest still apply.

        Returns
        -------
        list of str
            camelCase keys that were applied.
        """
        if isinstance(payload, SettingsSnapshot):
            payload = payload.to_payload()

        aliases = SettingsSnapshot.field_aliases()

        def value_of(field):
            key = aliases[field]
            return payload.get(key, payload.get(field))

        # The line goes before offset and rotation so saved values win
        steps = [
            ("calibration_points", self.set_calibration_points),
            ("use_calibration", self.set_use_calibration),
            ("flip_x_axis", self.set_flip_x_axis),
            ("line_start", None),
            ("line_y_offset", self.set_y_offset),
            ("line_rotation", self.set_rotation),
            ("target_frame_count", self.set_target_frame_count),
        ]

        applied = []
        with self._lock:
            for field, setter in steps:
                try:
                    if field == "line_start":
                        start, end = value_of("line_start"), value_of("line_end")
                        if start is None or end is None:
                            continue
                        # Offset and rotation are their own fields; keep them unless given
                        y_offset, rotation = self._y_offset, self._rotation
                        self.define_line(start, end)
                        self._y_offset, self._rotation = y_offset, rotation
                        applied.extend([aliases["line_start"], aliases["line_end"]])
                        continue

                    value = value_of(field)
                    if value is None:
                        continue
                    setter(value)
                    applied.append(aliases[field])
                except (InvalidControlValue, InvalidCalibration) as e:
                    logger.warning("Skipping saved setting '%s': %s", aliases[field], e)

        logger.info("Restored settings: %s", ", ".join(applied) if applied else "none")
        return applied
