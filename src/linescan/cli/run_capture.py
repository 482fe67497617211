"""Core line-scan pipeline execution logic.

This module contains the actual pipeline runner, separated from argument
parsing in scripts/. Scripts are thin wrappers; this is the real
implementation.
"""

import argparse
import json
import logging
import importlib.util
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

from linescan.setup_directories import setup_output_directories
from linescan.pipeline.orchestrator import PipelineOrchestrator
from linescan.schemas import resolve_config, ParamConfig, UserConfig, CLIConfig

__all__ = ['load_user_config_dict', 'clean_output_directory', 'run_linescan_pipeline', 'build_parser', 'main']

logger = logging.getLogger(__name__)


def load_user_config_dict(config_path: str) -> dict:
    """Load user config dict from Python file.

    Returns the raw dict before Pydantic validation.

    Parameters
    ----------
    config_path : str
        Path to user config Python file containing a CONFIG dict.

    Raises
    ------
    FileNotFoundError
        If config file does not exist.
    ValueError
        If no CONFIG dict found in file.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    spec = importlib.util.spec_from_file_location("linescan_user_config", path)
    if spec is None or spec.loader is None:
        raise ValueError(f"Could not load config module from {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    for name in dir(module):
        if name.startswith('CONFIG'):
            obj = getattr(module, name)
            if isinstance(obj, dict):
                return obj

    raise ValueError(f"No CONFIG dict found in {path}")


def clean_output_directory(base_dir, keep=("settings",)) -> None:
    """Delete everything under ``base_dir`` except the ``keep`` entries.

    The settings directory survives so a rerun keeps the saved line and
    calibration.
    """
    for child in Path(base_dir).iterdir():
        if child.name in keep:
            continue
        if child.is_dir():
            shutil.rmtree(child)
        else:
            child.unlink()


def run_linescan_pipeline(
    user_config_path: Optional[str] = None,
    cli_args: Optional[Dict[str, Any]] = None,
    max_runtime: Optional[float] = None,
    rerun: bool = False,
    verbose: bool = False,
) -> None:
    """Execute the line-scan pipeline.

    1. Loads and resolves configuration (Param < User < CLI)
    2. Optionally cleans the output directory (``rerun=True``)
    3. Sets up output directories
    4. Starts the orchestrator and blocks until completion or interruption

    Parameters
    ----------
    user_config_path : str, optional
        Python file with a CONFIG dict. Defaults only if omitted.
    cli_args : dict, optional
        CLI overrides. Keys: mode, source, base_dir, frame_count, log_level.
    max_runtime : float, optional
        Maximum runtime in minutes. If None, runs until the source ends
        or Ctrl+C.
    rerun : bool, optional
        If True, clear the output directory before running. The
        settings/ subdirectory (saved line and calibration) is kept.
    verbose : bool, optional
        If True, enable DEBUG logging and print the resolved config.

    Examples
    --------
    Run a recorded video with a 20-frame window::

        run_linescan_pipeline(
            "scripts/user_config.py",
            cli_args={"source": "recordings/lamp.mp4", "frame_count": 20},
        )
    """
    param_cfg = ParamConfig()

    user_cfg_dict = load_user_config_dict(user_config_path) if user_config_path else {}
    user_cfg = UserConfig.model_validate(user_cfg_dict)

    cli_args = dict(cli_args or {})
    if verbose and "log_level" not in cli_args:
        cli_args["log_level"] = "DEBUG"
    cli_dict = {k: v for k, v in cli_args.items() if v is not None}
    cli_cfg = CLIConfig.model_validate(cli_dict)

    config = resolve_config(param_cfg, user_cfg, cli_cfg)
    logger.debug("Resolved configuration: %s", config.model_dump())

    if rerun:
        base_dir_path = Path(config.base_dir).expanduser()
        if base_dir_path.exists():
            print(f"Cleaning output directory (keeping settings/): {base_dir_path}")
            clean_output_directory(base_dir_path)

    output_dirs = setup_output_directories(config.base_dir)

    print(f"\n{'='*60}")
    print("Line-Scan Spectral Trace Pipeline")
    print('='*60)
    print(f"Config: {user_config_path or '(defaults)'}")
    print(f"Source: {config.capture.source}")
    print(f"Mode:   {config.mode} (N={config.accumulation.target_frame_count})")
    print(f"Output: {output_dirs['base']}")
    print('='*60)

    if verbose:
        print("\nFull Internal Configuration:")
        print(json.dumps(config.model_dump(), indent=2, default=str))
        print('='*60)

    orchestrator = PipelineOrchestrator(config, output_dirs)
    orchestrator.start(max_runtime=max_runtime)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the line-scan spectral trace pipeline")
    parser.add_argument("config", nargs="?", help="Path to user config file (CONFIG dict)")
    parser.add_argument("--source", help="Camera index, video file or stream URL")
    parser.add_argument("--mode", choices=["live", "accumulate"], help="Override mode")
    parser.add_argument("--frame-count", type=int, help="Frames per accumulated trace")
    parser.add_argument("--base-dir", help="Output directory")
    parser.add_argument("--max-runtime", type=float, help="Max runtime in minutes")
    parser.add_argument("--rerun", action="store_true", help="Clear output directory before running (settings/ is kept)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    run_linescan_pipeline(
        args.config,
        cli_args={
            "source": args.source,
            "mode": args.mode,
            "frame_count": args.frame_count,
            "base_dir": args.base_dir,
        },
        max_runtime=args.max_runtime,
        rerun=args.rerun,
        verbose=args.verbose,
    )
