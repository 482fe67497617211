"""UserConfig: Forgiving, minimal user-facing configuration.

This schema accepts user inputs in a variety of formats, with aliases
for common naming patterns (e.g., VIDEO_SOURCE → capture.source,
FRAME_COUNT → accumulation.target_frame_count).

UserConfig is intentionally minimal - users only specify what they want
to override from the expert defaults. Validation is lenient to accept
both uppercase and lowercase keys, integers where floats are expected, etc.
"""

from typing import Literal, Optional, Union
from pydantic import Field, field_validator
from linescan.schemas.base import LinescanBaseModel
from linescan.schemas.param import (
    ChannelName,
    check_calibration_points,
    coerce_video_source,
    normalize_mode,
)


class UserCaptureConfig(LinescanBaseModel):
    """User-facing capture config."""
    source: Optional[Union[int, str]] = None
    width: Optional[int] = None
    height: Optional[int] = None
    fps: Optional[float] = None
    channel_order: Optional[Literal["BGR", "RGB"]] = None
    max_consecutive_failures: Optional[int] = None

    @field_validator("source", mode="before")
    @classmethod
    def coerce_source(cls, v):
        return coerce_video_source(v)

    @field_validator("channel_order", mode="before")
    @classmethod
    def normalize_channel_order(cls, v):
        if isinstance(v, str):
            return v.upper().strip()
        return v


class UserLineConfig(LinescanBaseModel):
    """User-facing line config."""
    start: Optional[tuple[float, float]] = None
    end: Optional[tuple[float, float]] = None
    y_offset: Optional[float] = None
    rotation: Optional[float] = None
    y_offset_limit: Optional[float] = None
    rotation_limit: Optional[float] = None


class UserAccumulationConfig(LinescanBaseModel):
    """User-facing accumulation config."""
    target_frame_count: Optional[int] = None


class UserCalibrationConfig(LinescanBaseModel):
    """User-facing calibration config."""
    points: Optional[list[tuple[float, float]]] = None
    enabled: Optional[bool] = None
    flip_x_axis: Optional[bool] = None


class UserVisualizationConfig(LinescanBaseModel):
    """User-facing visualization config."""
    enabled: Optional[bool] = None
    dpi: Optional[int] = None
    figsize: Optional[tuple[float, float]] = None
    output_format: Optional[Literal["png", "pdf", "jpeg"]] = None
    channels: Optional[list[ChannelName]] = None
    plot_every: Optional[int] = None


class UserOutputConfig(LinescanBaseModel):
    """User-facing output config."""
    save_traces: Optional[bool] = None
    compression: Optional[Literal["snappy", "gzip", "lz4", "none"]] = None


class UserConfig(LinescanBaseModel):
    """User-facing configuration schema.

    Minimal, forgiving, and uses common aliases. Users only specify
    what they want to override from ParamConfig defaults.

    This config is converted to internal overrides during resolution.

    Usage
    -----
        user_cfg = UserConfig(
            MODE="live",
            VIDEO_SOURCE=1,
            LINE_START=(40, 240),
            LINE_END=(600, 240),
            FRAME_COUNT=20,
        )

        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    # Top-level operational settings
    mode: Optional[Literal["live", "accumulate"]] = Field(None, alias="MODE")
    base_dir: Optional[str] = Field(None, alias="BASE_DIR")
    settings_file: Optional[str] = Field(None, alias="SETTINGS_FILE")

    # Capture settings (flat aliases)
    video_source: Optional[Union[int, str]] = Field(None, alias="VIDEO_SOURCE")
    frame_width: Optional[int] = Field(None, alias="FRAME_WIDTH")
    frame_height: Optional[int] = Field(None, alias="FRAME_HEIGHT")
    fps: Optional[float] = Field(None, alias="FPS")

    # Line settings (flat aliases)
    line_start: Optional[tuple[float, float]] = Field(None, alias="LINE_START")
    line_end: Optional[tuple[float, float]] = Field(None, alias="LINE_END")
    y_offset: Optional[float] = Field(None, alias="Y_OFFSET")
    rotation: Optional[float] = Field(None, alias="ROTATION")

    # Accumulation (flat alias)
    frame_count: Optional[int] = Field(None, alias="FRAME_COUNT")

    # Calibration settings (flat aliases)
    calibration_points: Optional[list[tuple[float, float]]] = Field(None, alias="CALIBRATION_POINTS")
    use_calibration: Optional[bool] = Field(None, alias="USE_CALIBRATION")
    flip_x_axis: Optional[bool] = Field(None, alias="FLIP_X_AXIS")

    # Output settings (flat aliases)
    save_traces: Optional[bool] = Field(None, alias="SAVE_TRACES")
    plot_every: Optional[int] = Field(None, alias="PLOT_EVERY")
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = Field(None, alias="LOG_LEVEL")

    # Nested overrides (advanced users)
    capture: Optional[UserCaptureConfig] = None
    line: Optional[UserLineConfig] = None
    accumulation: Optional[UserAccumulationConfig] = None
    calibration: Optional[UserCalibrationConfig] = None
    visualization: Optional[UserVisualizationConfig] = None
    output: Optional[UserOutputConfig] = None

    model_config = LinescanBaseModel.model_config.copy()
    # Allow forgiving input dictionaries (ignore unknown legacy keys)
    model_config.update({"populate_by_name": True, "extra": "ignore"})

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode_name(cls, v):
        return normalize_mode(v)

    @field_validator("video_source", mode="before")
    @classmethod
    def coerce_source(cls, v):
        return coerce_video_source(v)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.upper().strip()
        return v

    @field_validator("calibration_points", mode="after")
    @classmethod
    def check_points(cls, v):
        return check_calibration_points(v)

    def to_internal_overrides(self) -> dict:
        """Convert flat UserConfig to nested InternalConfig structure.

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        if self.mode is not None:
            overrides["mode"] = self.mode

        if self.base_dir is not None:
            overrides["base_dir"] = str(self.base_dir)

        if self.settings_file is not None:
            overrides["settings_file"] = str(self.settings_file)

        # Capture section
        capture = {}
        if self.video_source is not None:
            capture["source"] = self.video_source
        if self.frame_width is not None:
            capture["width"] = self.frame_width
        if self.frame_height is not None:
            capture["height"] = self.frame_height
        if self.fps is not None:
            capture["fps"] = self.fps

        # Merge with explicit capture config
        if self.capture is not None:
            capture.update(self.capture.model_dump(exclude_none=True))

        if capture:
            overrides["capture"] = capture

        # Line section
        line = {}
        if self.line_start is not None:
            line["start"] = self.line_start
        if self.line_end is not None:
            line["end"] = self.line_end
        if self.y_offset is not None:
            line["y_offset"] = self.y_offset
        if self.rotation is not None:
            line["rotation"] = self.rotation

        if self.line is not None:
            line.update(self.line.model_dump(exclude_none=True))

        if line:
            overrides["line"] = line

        # Accumulation section
        accumulation = {}
        if self.frame_count is not None:
            accumulation["target_frame_count"] = self.frame_count

        if self.accumulation is not None:
            accumulation.update(self.accumulation.model_dump(exclude_none=True))

        if accumulation:
            overrides["accumulation"] = accumulation

        # Calibration section
        calibration = {}
        if self.calibration_points is not None:
            calibration["points"] = self.calibration_points
        if self.use_calibration is not None:
            calibration["enabled"] = self.use_calibration
        if self.flip_x_axis is not None:
            calibration["flip_x_axis"] = self.flip_x_axis

        if self.calibration is not None:
            calibration.update(self.calibration.model_dump(exclude_none=True))

        if calibration:
            overrides["calibration"] = calibration

        # Visualization section
        visualization = {}
        if self.plot_every is not None:
            visualization["plot_every"] = self.plot_every

        if self.visualization is not None:
            visualization.update(self.visualization.model_dump(exclude_none=True))

        if visualization:
            overrides["visualization"] = visualization

        # Output section
        output = {}
        if self.save_traces is not None:
            output["save_traces"] = self.save_traces

        if self.output is not None:
            output.update(self.output.model_dump(exclude_none=True))

        if output:
            overrides["output"] = output

        if self.log_level is not None:
            overrides["logging"] = {"level": self.log_level}

        return overrides
