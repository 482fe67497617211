import pytest
from pydantic import ValidationError

from linescan.schemas import SettingsSnapshot

pytestmark = pytest.mark.unit


def test_camel_case_payload():
    snap = SettingsSnapshot(
        calibration_points=[{"position": 0.25, "wavelength": 450}],
        line_start={"x": 1, "y": 2},
        target_frame_count=5,
    )
    payload = snap.to_payload()

    assert payload["calibrationPoints"] == [{"position": 0.25, "wavelength": 450.0}]
    assert payload["lineStart"] == {"x": 1.0, "y": 2.0}
    assert payload["targetFrameCount"] == 5
    assert payload["useCalibration"] is None


def test_accepts_alias_keys_and_ignores_unknown():
    snap = SettingsSnapshot.model_validate({
        "useCalibration": True,
        "flipXAxis": False,
        "theme": "dark",
    })
    assert snap.use_calibration is True
    assert snap.flip_x_axis is False


def test_field_aliases():
    aliases = SettingsSnapshot.field_aliases()
    assert aliases["line_y_offset"] == "lineYOffset"
    assert aliases["target_frame_count"] == "targetFrameCount"
    assert len(aliases) == 8


def test_bad_types_rejected():
    with pytest.raises(ValidationError):
        SettingsSnapshot.model_validate({"lineStart": {"x": "left"}})
