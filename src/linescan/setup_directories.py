"""
Directory setup for the line-scan pipeline.

Date-first hierarchy per source:
- traces/YYYYMMDD/<source>/<source>_accumulated_HHMMSS_ffffff.nc
- plots/YYYYMMDD/<source>/<source>_<kind>_HHMMSS_ffffff.png
- summary/<source>_summary_YYYYMMDD_HHMMSS.parquet
- logs/linescan_<source>.log
- settings/linescan_settings.json
"""

import re
from pathlib import Path
from datetime import datetime, timezone


def setup_output_directories(base_output_dir):
    """
    Set up organized output directory structure.

    Parameters
    ----------
    base_output_dir : str or Path
        Base output directory. ``~`` is expanded.

    Returns
    -------
    dict
        Dictionary with paths: 'base', 'traces', 'plots', 'summary', 'logs',
        'settings'
    """
    base_output_dir = Path(base_output_dir).expanduser().resolve()

    directories = {
        "base": base_output_dir,
        "traces": base_output_dir / "traces",
        "plots": base_output_dir / "plots",
        "summary": base_output_dir / "summary",
        "logs": base_output_dir / "logs",
        "settings": base_output_dir / "settings",
    }

    for path in directories.values():
        path.mkdir(parents=True, exist_ok=True)

    return directories


def source_label(source):
    """
    Filesystem-safe name for a video source.

    Example
    -------
    >>> source_label(0)
    'cam0'
    >>> source_label('/data/runs/lamp test.mp4')
    'lamp_test'
    """
    if isinstance(source, int):
        return f"cam{source}"
    stem = Path(str(source)).stem or str(source)
    return re.sub(r"[^A-Za-z0-9_-]+", "_", stem).strip("_") or "source"


def _as_datetime(timestamp):
    if timestamp is None:
        return datetime.now(timezone.utc)
    if isinstance(timestamp, str):
        return datetime.fromisoformat(timestamp.replace('Z', '+00:00'))
    return timestamp


def _dated_dir(root, label, timestamp):
    date_dir = root / timestamp.strftime("%Y%m%d") / label
    date_dir.mkdir(parents=True, exist_ok=True)
    return date_dir


def get_trace_path(output_dirs, source, timestamp=None, kind="accumulated"):
    """
    Get NetCDF path for one trace.

    Returns
    -------
    Path
        traces/YYYYMMDD/<source>/<source>_<kind>_HHMMSS_ffffff.nc
    """
    timestamp = _as_datetime(timestamp)
    label = source_label(source)
    date_dir = _dated_dir(output_dirs["traces"], label, timestamp)
    return date_dir / f"{label}_{kind}_{timestamp.strftime('%H%M%S_%f')}.nc"


def get_plot_path(output_dirs, source, timestamp=None, kind="accumulated", output_format="png"):
    """
    Get plot image path for one trace.

    Returns
    -------
    Path
        plots/YYYYMMDD/<source>/<source>_<kind>_HHMMSS_ffffff.<format>
    """
    timestamp = _as_datetime(timestamp)
    label = source_label(source)
    date_dir = _dated_dir(output_dirs["plots"], label, timestamp)
    return date_dir / f"{label}_{kind}_{timestamp.strftime('%H%M%S_%f')}.{output_format}"


def get_summary_path(output_dirs, source, started_at=None):
    """
    Get parquet path for the run summary.

    Returns
    -------
    Path
        summary/<source>_summary_YYYYMMDD_HHMMSS.parquet
    """
    started_at = _as_datetime(started_at)
    summary_dir = output_dirs["summary"]
    summary_dir.mkdir(parents=True, exist_ok=True)
    return summary_dir / f"{source_label(source)}_summary_{started_at.strftime('%Y%m%d_%H%M%S')}.parquet"


def get_log_path(output_dirs, source=None):
    """
    Get log file path.

    Returns
    -------
    Path
        logs/linescan_<source>.log, or logs/linescan_latest.log
    """
    log_dir = output_dirs["logs"]
    log_dir.mkdir(parents=True, exist_ok=True)

    if source is None:
        return log_dir / "linescan_latest.log"
    return log_dir / f"linescan_{source_label(source)}.log"


def get_settings_path(output_dirs, settings_file=None):
    """
    Get the settings snapshot path.

    An explicit ``settings_file`` wins; otherwise the file lives in the
    settings directory.
    """
    if settings_file:
        return Path(settings_file).expanduser()
    return output_dirs["settings"] / "linescan_settings.json"
