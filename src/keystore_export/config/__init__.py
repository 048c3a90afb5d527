"""
Configuration management for key export tooling
"""

from .export_config import (
    ExportConfig,
    ExportConfigManager,
    ScryptConfig,
    LoggingConfig,
    ConfigError,
    CONFIG_PATH_ENV_VAR,
    configure_logging,
    load_config_from_json,
    load_config_from_file,
    load_default_config,
)

__all__ = [
    'ExportConfig',
    'ExportConfigManager',
    'ScryptConfig',
    'LoggingConfig',
    'ConfigError',
    'CONFIG_PATH_ENV_VAR',
    'configure_logging',
    'load_config_from_json',
    'load_config_from_file',
    'load_default_config',
]
