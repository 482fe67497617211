"""InternalConfig: Authoritative runtime configuration.

This is the ONLY config schema that runtime code sees. It is fully validated,
normalized, and contains NO optional fields that processing code depends on.

All .get() calls, fallback defaults, and validation logic are FORBIDDEN in
runtime code - everything is explicit here.
"""

from typing import Literal, Optional, Union
from pydantic import Field, ConfigDict, field_validator, model_validator
from linescan.schemas.base import LinescanBaseModel
from linescan.schemas.param import ChannelName, check_calibration_points


# =============================================================================
# Nested Configuration Models (Runtime)
# =============================================================================

class InternalCaptureConfig(LinescanBaseModel):
    """Runtime capture configuration."""
    source: Union[int, str]
    width: int
    height: int
    fps: float
    channel_order: Literal["BGR", "RGB"]
    max_consecutive_failures: int = Field(ge=1)


class InternalLineConfig(LinescanBaseModel):
    """Runtime line configuration.

    Note: start and end may both be None. The line is then defined at
    runtime (or restored from the settings file) before ticks produce output.
    """
    start: Optional[tuple[float, float]]
    end: Optional[tuple[float, float]]
    y_offset: float
    rotation: float
    y_offset_limit: float = Field(gt=0)
    rotation_limit: float = Field(gt=0, le=180.0)

    @model_validator(mode="after")
    def check_line(self):
        if (self.start is None) != (self.end is None):
            raise ValueError("line.start and line.end must be given together")
        if abs(self.y_offset) > self.y_offset_limit:
            raise ValueError(f"y_offset {self.y_offset} exceeds ±{self.y_offset_limit}")
        if abs(self.rotation) > self.rotation_limit:
            raise ValueError(f"rotation {self.rotation} exceeds ±{self.rotation_limit}")
        return self


class InternalAccumulationConfig(LinescanBaseModel):
    """Runtime accumulation configuration."""
    target_frame_count: int = Field(ge=1)


class InternalCalibrationConfig(LinescanBaseModel):
    """Runtime calibration configuration."""
    points: list[tuple[float, float]]
    enabled: bool
    flip_x_axis: bool

    @field_validator("points", mode="after")
    @classmethod
    def validate_points(cls, v):
        return check_calibration_points(v)


class InternalVisualizationConfig(LinescanBaseModel):
    """Runtime visualization settings."""
    enabled: bool
    dpi: int
    figsize: tuple[float, float]
    output_format: Literal["png", "pdf", "jpeg"]
    channels: list[ChannelName]
    plot_every: int = Field(ge=1)


class InternalOutputConfig(LinescanBaseModel):
    """Runtime output configuration."""
    save_traces: bool
    compression: Literal["snappy", "gzip", "lz4", "none"]


class InternalLoggingConfig(LinescanBaseModel):
    """Runtime logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class InternalProcessorConfig(LinescanBaseModel):
    """Runtime processor configuration."""
    frame_queue_size: int = Field(default=4, ge=1)  # Small: stale frames are dropped
    output_queue_size: int = Field(default=32, ge=1)
    queue_timeout: float = Field(default=0.5, gt=0)  # Seconds per blocking get


# =============================================================================
# Main InternalConfig
# =============================================================================

class InternalConfig(LinescanBaseModel):
    """Authoritative runtime configuration.

    This is the ONLY configuration schema that processing code sees.
    It is fully validated, immutable, and contains explicit values for
    all parameters (no None for fields that runtime depends on).

    Usage
    -----
    Runtime modules receive InternalConfig and access fields directly:

        def __init__(self, config: InternalConfig):
            self.target = config.accumulation.target_frame_count  # NOT .get()
            self.limit = config.line.y_offset_limit

    Rules
    -----
    - NO .get() calls
    - NO fallback defaults
    - NO type checking
    - NO validation

    All of that happens during config resolution, not in runtime code.
    """

    mode: Literal["live", "accumulate"]
    base_dir: str
    settings_file: Optional[str]
    capture: InternalCaptureConfig
    line: InternalLineConfig
    accumulation: InternalAccumulationConfig
    calibration: InternalCalibrationConfig
    visualization: InternalVisualizationConfig
    output: InternalOutputConfig
    logging: InternalLoggingConfig
    processor: InternalProcessorConfig = Field(default_factory=InternalProcessorConfig)

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        frozen=True,  # Immutable after construction
    )
