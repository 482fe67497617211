from pathlib import Path

import pytest

from linescan.cli.run_capture import build_parser, clean_output_directory, load_user_config_dict
from linescan.schemas import ParamConfig, UserConfig, resolve_config

pytestmark = pytest.mark.unit

REPO_ROOT = Path(__file__).resolve().parents[2]


def test_load_user_config_dict(tmp_path):
    path = tmp_path / "cfg.py"
    path.write_text('CONFIG = {"MODE": "live", "FRAME_COUNT": 4}\n')

    assert load_user_config_dict(str(path)) == {"MODE": "live", "FRAME_COUNT": 4}


def test_load_user_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_user_config_dict(str(tmp_path / "missing.py"))


def test_load_user_config_without_dict(tmp_path):
    path = tmp_path / "cfg.py"
    path.write_text("VALUE = 1\n")
    with pytest.raises(ValueError, match="No CONFIG dict"):
        load_user_config_dict(str(path))


def test_shipped_user_config_resolves():
    raw = load_user_config_dict(str(REPO_ROOT / "scripts" / "user_config.py"))
    config = resolve_config(ParamConfig(), UserConfig.model_validate(raw), None)

    assert config.line.start == (40.0, 240.0)
    assert config.accumulation.target_frame_count == 10


def test_parser():
    args = build_parser().parse_args(
        ["cfg.py", "--source", "1", "--mode", "live", "--frame-count", "8", "--max-runtime", "2.5", "-v"]
    )

    assert args.config == "cfg.py"
    assert args.source == "1"
    assert args.mode == "live"
    assert args.frame_count == 8
    assert args.max_runtime == 2.5
    assert args.verbose
    assert not args.rerun


def test_parser_rejects_unknown_mode():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--mode", "burst"])


def test_clean_output_directory_keeps_settings(tmp_path):
    (tmp_path / "settings").mkdir()
    (tmp_path / "settings" / "linescan_settings.json").write_text("{}")
    (tmp_path / "traces").mkdir()
    (tmp_path / "traces" / "trace_0001.nc").write_bytes(b"x")
    (tmp_path / "logs").mkdir()
    (tmp_path / "stray.txt").write_text("old")

    clean_output_directory(tmp_path)

    assert sorted(p.name for p in tmp_path.iterdir()) == ["settings"]
    assert (tmp_path / "settings" / "linescan_settings.json").read_text() == "{}"
