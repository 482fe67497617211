"""Pydantic configuration schemas for the linescan pipeline.

All configuration validation, coercion, and normalization happens at schema
validation time via Pydantic.

Exports
-------
resolve_config : function
    Single entrypoint for configuration resolution
InternalConfig : class
    Fully validated, authoritative runtime configuration
ParamConfig : class
    Expert defaults (complete)
UserConfig : class
    User-facing configuration (forgiving, minimal)
CLIConfig : class
    Command-line operational overrides
SettingsSnapshot : class
    Persisted operator settings (camelCase JSON)
"""

from linescan.schemas.resolve import resolve_config
from linescan.schemas.internal import InternalConfig
from linescan.schemas.param import ParamConfig
from linescan.schemas.user import UserConfig
from linescan.schemas.cli import CLIConfig
from linescan.schemas.settings import SettingsSnapshot

__all__ = [
    'resolve_config',
    'InternalConfig',
    'ParamConfig',
    'UserConfig',
    'CLIConfig',
    'SettingsSnapshot',
]
