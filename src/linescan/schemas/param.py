"""ParamConfig: Expert defaults for the linescan pipeline.

This module defines the complete default configuration. ALL pipeline
parameters must have defaults here. No runtime code should define fallback
values - this is the single source of truth for defaults.

Runtime code NEVER reads from ParamConfig directly - it only receives InternalConfig.
"""

from typing import Literal, Optional, Union
from pydantic import Field, field_validator, model_validator
from linescan.schemas.base import LinescanBaseModel
from linescan.scan.calibration import validate_calibration_points


ChannelName = Literal["red", "green", "blue", "intensity"]


def coerce_video_source(v):
    """Device indices given as strings ("0") become ints; paths and URLs stay strings."""
    if isinstance(v, str) and v.strip().isdigit():
        return int(v.strip())
    return v


def normalize_mode(v):
    """Accept "Live", "ACCUMULATE", "accumulating", ..."""
    if isinstance(v, str):
        v = v.lower().strip()
        if v == "accumulating":
            return "accumulate"
    return v


def check_calibration_points(v):
    """Validate calibration points; InvalidCalibration is a ValueError."""
    if v is None:
        return v
    return [(p.position, p.wavelength) for p in validate_calibration_points(v)]


# =============================================================================
# Nested Configuration Models
# =============================================================================

class CaptureConfig(LinescanBaseModel):
    """Video frame source configuration."""
    source: Union[int, str] = Field(0, description="Camera index, video file path or stream URL")
    width: int = Field(640, ge=1)
    height: int = Field(480, ge=1)
    fps: float = Field(30.0, gt=0)
    channel_order: Literal["BGR", "RGB"] = "BGR"  # OpenCV delivers BGR
    max_consecutive_failures: int = Field(30, ge=1)

    @field_validator("source", mode="before")
    @classmethod
    def coerce_source(cls, v):
        return coerce_video_source(v)


class LineConfig(LinescanBaseModel):
    """Sample line definition and adjustment bounds."""
    start: Optional[tuple[float, float]] = None
    end: Optional[tuple[float, float]] = None
    y_offset: float = 0.0
    rotation: float = 0.0
    y_offset_limit: float = Field(50.0, gt=0, description="Max |y_offset| in pixels")
    rotation_limit: float = Field(90.0, gt=0, le=180.0, description="Max |rotation| in degrees")

    @model_validator(mode="after")
    def check_line(self):
        if (self.start is None) != (self.end is None):
            raise ValueError("line.start and line.end must be given together")
        if abs(self.y_offset) > self.y_offset_limit:
            raise ValueError(f"y_offset {self.y_offset} exceeds ±{self.y_offset_limit}")
        if abs(self.rotation) > self.rotation_limit:
            raise ValueError(f"rotation {self.rotation} exceeds ±{self.rotation_limit}")
        return self


class AccumulationConfig(LinescanBaseModel):
    """Frame accumulation configuration."""
    target_frame_count: int = Field(10, ge=1, description="Frames summed per accumulated trace")


class CalibrationConfig(LinescanBaseModel):
    """Position to wavelength calibration."""
    points: list[tuple[float, float]] = Field(
        default_factory=lambda: [(0.25, 450.0), (0.75, 650.0)],
        description="(position, wavelength_nm) pairs",
    )
    enabled: bool = False
    flip_x_axis: bool = False

    @field_validator("points", mode="after")
    @classmethod
    def validate_points(cls, v):
        return check_calibration_points(v)


class VisualizationConfig(LinescanBaseModel):
    """Trace plot settings."""
    enabled: bool = True
    dpi: int = Field(100, ge=50)
    figsize: tuple[float, float] = (10.0, 4.0)
    output_format: Literal["png", "pdf", "jpeg"] = "png"
    channels: list[ChannelName] = Field(
        default_factory=lambda: ["red", "green", "blue", "intensity"]
    )
    plot_every: int = Field(1, ge=1, description="Plot every Nth emitted trace")


class OutputConfig(LinescanBaseModel):
    """Output file configuration."""
    save_traces: bool = True  # accumulated traces to NetCDF
    compression: Literal["snappy", "gzip", "lz4", "none"] = "snappy"


class LoggingConfig(LinescanBaseModel):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


# =============================================================================
# Main ParamConfig
# =============================================================================

class ParamConfig(LinescanBaseModel):
    """Complete expert configuration with all defaults.

    This is the single source of truth for all pipeline parameters.
    Every tunable parameter MUST have a default here.

    Usage
    -----
    This config is NOT used directly by runtime code. It serves as the
    base layer in config resolution:

        internal_cfg = resolve_config(param_cfg, user_cfg, cli_cfg)

    Runtime code only sees InternalConfig.
    """

    mode: Literal["live", "accumulate"] = "accumulate"
    base_dir: str = "./linescan_output"
    settings_file: Optional[str] = None  # None: <base_dir>/settings/linescan_settings.json
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    line: LineConfig = Field(default_factory=LineConfig)
    accumulation: AccumulationConfig = Field(default_factory=AccumulationConfig)
    calibration: CalibrationConfig = Field(default_factory=CalibrationConfig)
    visualization: VisualizationConfig = Field(default_factory=VisualizationConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode_name(cls, v):
        return normalize_mode(v)
