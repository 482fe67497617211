"""Configuration resolution and merging logic.

resolve_config() is the single entrypoint: it merges ParamConfig, UserConfig
and CLIConfig by precedence and returns a frozen InternalConfig.

Precedence (highest to lowest):
1. CLIConfig (command-line overrides)
2. UserConfig (user file)
3. ParamConfig (expert defaults)
"""

from typing import Optional, Type, TypeVar, Union
from linescan.schemas.base import LinescanBaseModel
from linescan.schemas.param import ParamConfig
from linescan.schemas.user import UserConfig
from linescan.schemas.cli import CLIConfig
from linescan.schemas.internal import InternalConfig

__all__ = ['deep_merge', 'resolve_config']

ModelT = TypeVar("ModelT", bound=LinescanBaseModel)


def deep_merge(base: dict, *overrides: dict) -> dict:
    """Deep merge multiple dictionaries.

    Later dictionaries win. Nested dicts are merged key by key; any other
    value (lists and tuples included) is replaced whole.

    Examples
    --------
    >>> deep_merge({"line": {"y_offset": 0.0, "rotation": 0.0}}, {"line": {"rotation": 15.0}})
    {'line': {'y_offset': 0.0, 'rotation': 15.0}}
    """
    result = dict(base)

    for override in overrides:
        for key, value in override.items():
            if isinstance(result.get(key), dict) and isinstance(value, dict):
                result[key] = deep_merge(result[key], value)
            else:
                result[key] = value

    return result


def _as_model(value, model: Type[ModelT]) -> ModelT:
    if value is None:
        return model()
    if isinstance(value, model):
        return value
    return model.model_validate(value)


def resolve_config(
    param_cfg: Union[dict, ParamConfig],
    user_cfg: Optional[Union[dict, UserConfig]] = None,
    cli_cfg: Optional[Union[dict, CLIConfig]] = None,
) -> InternalConfig:
    """Resolve final runtime configuration from param, user, and CLI configs.

    Parameters
    ----------
    param_cfg : dict or ParamConfig
        Expert configuration with complete defaults. Required.
    user_cfg : dict or UserConfig, optional
        User overrides (flat aliases or nested sections).
    cli_cfg : dict or CLIConfig, optional
        Command-line overrides.

    Returns
    -------
    InternalConfig
        Fully validated, immutable runtime configuration

    Raises
    ------
    ValidationError
        If any layer, or the merged result, fails validation. Out-of-range
        line offsets and duplicate calibration positions are caught here.

    Examples
    --------
    >>> config = resolve_config(ParamConfig(), {"FRAME_COUNT": 25}, {"mode": "live"})
    >>> config.accumulation.target_frame_count
    25
    >>> config.mode
    'live'
    """
    param = _as_model(param_cfg, ParamConfig)
    user = _as_model(user_cfg, UserConfig)
    cli = _as_model(cli_cfg, CLIConfig)

    merged = deep_merge(
        param.model_dump(),
        user.to_internal_overrides(),
        cli.to_internal_overrides(),
    )

    return InternalConfig.model_validate(merged)
