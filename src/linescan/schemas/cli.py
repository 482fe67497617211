"""CLIConfig: Command-line operational overrides.

Minimal configuration for operational parameters that commonly change
between runs: mode, video source, output path, frame count, verbosity.

This schema handles command-line arguments parsed by argparse.
"""

from typing import Literal, Optional, Union
from pydantic import Field, field_validator
from linescan.schemas.base import LinescanBaseModel
from linescan.schemas.param import coerce_video_source, normalize_mode


class CLIConfig(LinescanBaseModel):
    """Command-line configuration overrides.

    Operational-only settings that override user and param configs.
    Highest priority in config resolution.

    Usage
    -----
        cli_cfg = CLIConfig(
            mode="live",
            source="recordings/lamp.mp4",
            base_dir="/scratch/linescan_output",
        )

        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    mode: Optional[Literal["live", "accumulate"]] = None
    source: Optional[Union[int, str]] = None
    base_dir: Optional[str] = None
    frame_count: Optional[int] = Field(None, ge=1)
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = None

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode_name(cls, v):
        return normalize_mode(v)

    @field_validator("source", mode="before")
    @classmethod
    def coerce_source(cls, v):
        return coerce_video_source(v)

    def to_internal_overrides(self) -> dict:
        """Convert CLI config to internal config structure.

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

        if self.source is not None:
            overrides["capture"] = {"source": self.source}

        if self.frame_count is not None:
            overrides["accumulation"] = {"target_frame_count": self.frame_count}

        if self.log_level is not None:
            overrides["logging"] = {"level": self.log_level}

        return overrides
