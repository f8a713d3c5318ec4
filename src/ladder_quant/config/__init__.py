"""Convenience exports for the configuration package."""

from .constants import *  # noqa: F401,F403
from .loader import ConfigError, load_config, resolve_config_path, save_config
from .logging_conf import JSONFormatter, configure_logging
from .params_default import DEFAULT_PARAMS, StrategyParams, default_params, merge_params
from .schemas import DataSourcesConfig, LadderBacktestConfig, StrategyConfig
from .settings import ENV_PREFIX, Settings, get_settings, reset_settings_cache

__all__ = [
    "JSONFormatter",
    "configure_logging",
    "DEFAULT_PARAMS",
    "StrategyParams",
    "default_params",
    "merge_params",
    "ENV_PREFIX",
    "Settings",
    "get_settings",
    "reset_settings_cache",
    # Schema classes
    "DataSourcesConfig",
    "LadderBacktestConfig",
    "StrategyConfig",
    # Loader functions
    "load_config",
    "save_config",
    "resolve_config_path",
    "ConfigError",
]
