"""Root-level pytest fixtures for the linescan test suite.

Provides shared configuration fixtures following the Pydantic-based
architecture. Tests build configs through these fixtures rather than raw
dicts.
"""

import pytest
from pathlib import Path
import tempfile
import shutil

from linescan.schemas import ParamConfig, UserConfig, resolve_config
from linescan.setup_directories import setup_output_directories


# =============================================================================
# Configuration Fixtures (Pydantic-based)
# =============================================================================

@pytest.fixture
def param_config():
    """Expert configuration with all defaults."""
    return ParamConfig()


@pytest.fixture
def internal_config(param_config):
    """Fully validated runtime configuration (no overrides).

    Examples
    --------
    >>> def test_coordinator_init(internal_config):
    ...     coordinator = PipelineCoordinator(internal_config)
    ...     assert coordinator.target_frame_count == 10
    """
    return resolve_config(param_config, None, None)


@pytest.fixture
def make_config(param_config):
    """Factory fixture for creating custom test configs.

    Returns a callable that accepts UserConfig-compatible kwargs.

    Examples
    --------
    >>> def test_live_mode(make_config):
    ...     config = make_config(MODE="live", LINE_START=(0, 0), LINE_END=(10, 0))
    ...     assert config.mode == "live"
    """
    def _make(**user_overrides):
        """Create InternalConfig with user overrides."""
        if user_overrides:
            user = UserConfig(**user_overrides)
            return resolve_config(param_config, user, None)
        return resolve_config(param_config, None, None)

    return _make


# =============================================================================
# Directory Fixtures
# =============================================================================

@pytest.fixture
def temp_dir():
    """Temporary directory that is cleaned up after test."""
    d = tempfile.mkdtemp()
    yield Path(d)
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def output_dirs(temp_dir):
    """Standard linescan output directory structure under temp_dir."""
    return setup_output_directories(temp_dir)
