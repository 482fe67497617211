"""SettingsSnapshot: persisted operator settings.

Serialized with camelCase keys::

    {
      "calibrationPoints": [{"position": 0.25, "wavelength": 450.0}, ...],
      "useCalibration": false,
      "flipXAxis": false,
      "lineStart": {"x": 40.0, "y": 240.0},
      "lineEnd": {"x": 600.0, "y": 240.0},
      "lineYOffset": 0.0,
      "lineRotation": 0.0,
      "targetFrameCount": 10
    }

Every field is optional. A missing (or null) field means "leave as is" on
restore. Unknown keys are ignored so older or newer files still load.
"""

from typing import Optional
from pydantic import ConfigDict, Field
from linescan.schemas.base import LinescanBaseModel


class PointModel(LinescanBaseModel):
    """Pixel coordinate."""
    x: float
    y: float


class CalibrationPointModel(LinescanBaseModel):
    """Calibration anchor."""
    position: float
    wavelength: float


class SettingsSnapshot(LinescanBaseModel):
    """Snapshot of line, accumulation and calibration settings."""

    calibration_points: Optional[list[CalibrationPointModel]] = Field(None, alias="calibrationPoints")
    use_calibration: Optional[bool] = Field(None, alias="useCalibration")
    flip_x_axis: Optional[bool] = Field(None, alias="flipXAxis")
    line_start: Optional[PointModel] = Field(None, alias="lineStart")
    line_end: Optional[PointModel] = Field(None, alias="lineEnd")
    line_y_offset: Optional[float] = Field(None, alias="lineYOffset")
    line_rotation: Optional[float] = Field(None, alias="lineRotation")
    target_frame_count: Optional[int] = Field(None, alias="targetFrameCount")

    model_config = ConfigDict(
        extra='ignore',
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_payload(self) -> dict:
        """camelCase dict ready for JSON."""
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def field_aliases(cls) -> dict:
        """Map of field name to camelCase key."""
        return {name: info.alias or name for name, info in cls.model_fields.items()}
