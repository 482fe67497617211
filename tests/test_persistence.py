import json

import pytest

from linescan.persistence import load_settings, save_settings

pytestmark = pytest.mark.unit


def snapshot():
    return {
        "calibrationPoints": [{"position": 0.25, "wavelength": 450.0}, {"position": 0.75, "wavelength": 650.0}],
        "useCalibration": True,
        "flipXAxis": False,
        "lineStart": {"x": 40.0, "y": 240.0},
        "lineEnd": {"x": 600.0, "y": 240.0},
        "lineYOffset": -3.0,
        "lineRotation": 2.5,
        "targetFrameCount": 12,
    }


def test_save_then_load(tmp_path):
    path = save_settings(snapshot(), tmp_path / "settings" / "s.json")

    assert path.exists()
    raw = json.loads(path.read_text())
    assert "savedAt" in raw

    loaded = load_settings(path)
    assert loaded == snapshot()


def test_missing_file_returns_none(tmp_path):
    assert load_settings(tmp_path / "nope.json") is None


def test_partial_file_drops_nulls_and_unknown_keys(tmp_path):
    path = tmp_path / "s.json"
    path.write_text(json.dumps({"targetFrameCount": 4, "lineStart": None, "legacyKey": 1}))

    assert load_settings(path) == {"targetFrameCount": 4}


def test_invalid_json_raises_value_error(tmp_path):
    path = tmp_path / "s.json"
    path.write_text("{")
    with pytest.raises(ValueError, match="Invalid settings file"):
        load_settings(path)


def test_wrong_types_raise_value_error(tmp_path):
    path = tmp_path / "s.json"
    path.write_text(json.dumps({"targetFrameCount": "many"}))
    with pytest.raises(ValueError):
        load_settings(path)
