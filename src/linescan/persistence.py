"""Settings snapshot persistence (JSON).

The snapshot is the camelCase dict produced by
``PipelineCoordinator.snapshot()``. Loading validates it against
SettingsSnapshot so malformed files are reported instead of half-applied.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from linescan.schemas.settings import SettingsSnapshot

__all__ = ['save_settings', 'load_settings']

logger = logging.getLogger(__name__)


def save_settings(snapshot: Union[dict, SettingsSnapshot], path: Union[str, Path]) -> Path:
    """Write a settings snapshot to ``path`` as JSON.

    Parameters
    ----------
    snapshot : dict or SettingsSnapshot
        camelCase payload (field names are accepted too).
    path : str or Path
        Target file; parent directories are created.

    Returns
    -------
    Path
        The written file.
    """
    if not isinstance(snapshot, SettingsSnapshot):
        snapshot = SettingsSnapshot.model_validate(snapshot)

    payload = snapshot.to_payload()
    payload["savedAt"] = datetime.now(timezone.utc).isoformat()

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(payload, f, indent=2)

    logger.info("Settings saved: %s", path)
    return path


def load_settings(path: Union[str, Path]) -> Optional[dict]:
    """Read a settings snapshot.

    Returns
    -------
    dict or None
        camelCase payload with unknown keys dropped, or None if the file
        does not exist.

    Raises
    ------
    ValueError
        If the file is not valid JSON or does not match SettingsSnapshot.
    """
    path = Path(path)
    if not path.exists():
        logger.debug("No settings file at %s", path)
        return None

    try:
        with open(path) as f:
            raw = json.load(f)
        snapshot = SettingsSnapshot.model_validate(raw)
    except (json.JSONDecodeError, ValidationError) as e:
        raise ValueError(f"Invalid settings file {path}: {e}") from e

    logger.info("Settings loaded: %s", path)
    return snapshot.model_dump(by_alias=True, exclude_none=True, mode="json")
