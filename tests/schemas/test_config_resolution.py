"""Config resolution: ParamConfig < UserConfig < CLIConfig."""

import pytest
from pydantic import ValidationError

from linescan.schemas import CLIConfig, InternalConfig, ParamConfig, UserConfig, resolve_config
from linescan.schemas.resolve import deep_merge

pytestmark = pytest.mark.unit


def test_defaults_resolve(internal_config):
    assert isinstance(internal_config, InternalConfig)
    assert internal_config.mode == "accumulate"
    assert internal_config.capture.source == 0
    assert internal_config.accumulation.target_frame_count == 10
    assert internal_config.line.start is None
    assert internal_config.calibration.points == [(0.25, 450.0), (0.75, 650.0)]
    assert internal_config.calibration.enabled is False
    assert internal_config.processor.frame_queue_size == 4


def test_internal_config_is_frozen(internal_config):
    with pytest.raises(ValidationError):
        internal_config.mode = "live"


def test_user_flat_aliases(make_config):
    config = make_config(
        MODE="Live",
        VIDEO_SOURCE="2",
        LINE_START=(1, 2),
        LINE_END=(30, 2),
        Y_OFFSET=-4,
        ROTATION=15,
        FRAME_COUNT=25,
        CALIBRATION_POINTS=[(0.1, 400), (0.9, 700)],
        USE_CALIBRATION=True,
        FLIP_X_AXIS=True,
        SAVE_TRACES=False,
        PLOT_EVERY=5,
        LOG_LEVEL="debug",
    )

    assert config.mode == "live"
    assert config.capture.source == 2
    assert config.line.start == (1.0, 2.0)
    assert config.line.y_offset == -4.0
    assert config.line.rotation == 15.0
    assert config.accumulation.target_frame_count == 25
    assert config.calibration.points == [(0.1, 400.0), (0.9, 700.0)]
    assert config.calibration.enabled and config.calibration.flip_x_axis
    assert config.output.save_traces is False
    assert config.visualization.plot_every == 5
    assert config.logging.level == "DEBUG"


def test_video_file_source_stays_string(make_config):
    config = make_config(VIDEO_SOURCE="recordings/lamp.mp4")
    assert config.capture.source == "recordings/lamp.mp4"


def test_nested_user_sections_override_flat(make_config):
    config = make_config(FRAME_COUNT=5, accumulation={"target_frame_count": 8})
    assert config.accumulation.target_frame_count == 8


def test_unknown_user_keys_ignored(make_config):
    config = make_config(RADAR_ID="KDIX", FRAME_COUNT=4)
    assert config.accumulation.target_frame_count == 4


def test_cli_overrides_user():
    user = UserConfig(MODE="live", FRAME_COUNT=5, VIDEO_SOURCE=1)
    cli = CLIConfig(mode="accumulate", frame_count=12, source="clip.avi")

    config = resolve_config(ParamConfig(), user, cli)

    assert config.mode == "accumulate"
    assert config.accumulation.target_frame_count == 12
    assert config.capture.source == "clip.avi"


def test_dict_layers_accepted():
    config = resolve_config({}, {"FRAME_COUNT": 25}, {"mode": "live"})
    assert config.accumulation.target_frame_count == 25
    assert config.mode == "live"


def test_accumulating_is_normalized():
    assert ParamConfig(mode="ACCUMULATING").mode == "accumulate"


@pytest.mark.parametrize("user", [
    {"FRAME_COUNT": 0},
    {"LINE_START": (0, 0)},                               # end missing
    {"LINE_START": (0, 0), "LINE_END": (5, 0), "Y_OFFSET": 80},
    {"ROTATION": 120},
    {"CALIBRATION_POINTS": [(0.5, 500)]},
    {"CALIBRATION_POINTS": [(0.5, 500), (0.5, 600)]},
    {"MODE": "burst"},
])
def test_invalid_values_rejected(user):
    with pytest.raises(ValidationError):
        resolve_config(ParamConfig(), user, None)


def test_cli_frame_count_must_be_positive():
    with pytest.raises(ValidationError):
        CLIConfig(frame_count=0)


def test_param_config_forbids_unknown_fields():
    with pytest.raises(ValidationError):
        ParamConfig(threshold_dbz=30)


def test_deep_merge():
    base = {"line": {"y_offset": 0.0, "rotation": 0.0}, "mode": "accumulate"}
    merged = deep_merge(base, {"line": {"rotation": 15.0}}, {"mode": "live"})

    assert merged == {"line": {"y_offset": 0.0, "rotation": 15.0}, "mode": "live"}
    assert base["line"]["rotation"] == 0.0


def test_deep_merge_replaces_lists():
    merged = deep_merge({"points": [(0, 1), (1, 2)]}, {"points": [(0.5, 3)]})
    assert merged == {"points": [(0.5, 3)]}
