from datetime import datetime, timezone
from pathlib import Path

import pytest

from linescan.setup_directories import (
    get_log_path,
    get_plot_path,
    get_settings_path,
    get_summary_path,
    get_trace_path,
    setup_output_directories,
    source_label,
)

pytestmark = pytest.mark.unit

TS = datetime(2025, 6, 1, 14, 5, 9, 123456, tzinfo=timezone.utc)


def test_setup_output_directories_creates_all(tmp_path):
    dirs = setup_output_directories(tmp_path)

    assert set(dirs.keys()) == {"base", "traces", "plots", "summary", "logs", "settings"}

    for path in dirs.values():
        assert isinstance(path, Path)
        assert path.exists()
        assert path.is_dir()


def test_setup_output_directories_is_idempotent(tmp_path):
    dirs1 = setup_output_directories(tmp_path)
    dirs2 = setup_output_directories(tmp_path)

    assert dirs1 == dirs2


@pytest.mark.parametrize("source, expected", [
    (0, "cam0"),
    (3, "cam3"),
    ("/data/runs/lamp test.mp4", "lamp_test"),
    ("rtsp://192.168.1.5/stream", "stream"),
])
def test_source_label(source, expected):
    assert source_label(source) == expected


def test_trace_path_is_date_first(tmp_path):
    dirs = setup_output_directories(tmp_path)
    path = get_trace_path(dirs, 0, timestamp=TS)

    assert path == dirs["traces"] / "20250601" / "cam0" / "cam0_accumulated_140509_123456.nc"
    assert path.parent.is_dir()


def test_plot_path_uses_kind_and_format(tmp_path):
    dirs = setup_output_directories(tmp_path)
    path = get_plot_path(dirs, "clip.avi", timestamp=TS.isoformat(), kind="live", output_format="pdf")

    assert path.name == "clip_live_140509_123456.pdf"
    assert path.parent == dirs["plots"] / "20250601" / "clip"


def test_summary_and_log_paths(tmp_path):
    dirs = setup_output_directories(tmp_path)

    assert get_summary_path(dirs, 0, TS).name == "cam0_summary_20250601_140509.parquet"
    assert get_log_path(dirs, 1).name == "linescan_cam1.log"
    assert get_log_path(dirs).name == "linescan_latest.log"


def test_settings_path(tmp_path):
    dirs = setup_output_directories(tmp_path)

    assert get_settings_path(dirs) == dirs["settings"] / "linescan_settings.json"
    assert get_settings_path(dirs, str(tmp_path / "mine.json")) == tmp_path / "mine.json"
