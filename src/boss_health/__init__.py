"""Boss health tracking and announcement for running minigames."""

from .config import BossHealthConfig, load_config
from .exceptions import BossHealthError, ConfigError, ConsoleTimeout, SamplingError
from .plugin import BossHealthPlugin

__all__ = [
    "BossHealthConfig",
    "BossHealthError",
    "BossHealthPlugin",
    "ConfigError",
    "ConsoleTimeout",
    "SamplingError",
    "load_config",
]
