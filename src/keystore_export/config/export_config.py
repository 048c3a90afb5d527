"""
Configuration for key export tooling

Loads scrypt cost and logging settings from JSON, e.g.::

    {
        "scrypt": {"profile": "standard"},
        "logging": {"level": "INFO", "structured": false}
    }
"""

import os
import json
import logging
from typing import Dict, Optional, Any, Union
from dataclasses import dataclass, field, replace
from pathlib import Path

from ..crypto.scrypt_params import ScryptParams, SCRYPT_PROFILES

CONFIG_PATH_ENV_VAR = 'KEYSTORE_EXPORT_CONFIG'

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

STRUCTURED_LOG_FORMAT = '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}'
PLAIN_LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


class ConfigError(Exception):
    """Configuration loading and validation error"""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


@dataclass
class ScryptConfig:
    """Scrypt cost selection; explicit n/r/p override the profile"""
    profile: str = 'standard'
    n: Optional[int] = None
    r: Optional[int] = None
    p: Optional[int] = None

    def to_params(self) -> ScryptParams:
        params = SCRYPT_PROFILES[self.profile]
        overrides = {name: getattr(self, name) for name in ('n', 'r', 'p') if getattr(self, name) is not None}
        return replace(params, **overrides) if overrides else params


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = 'WARNING'
    structured: bool = False


@dataclass
class ExportConfig:
    """Top-level configuration"""
    scrypt: ScryptConfig = field(default_factory=ScryptConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class ExportConfigManager:
    """Configuration manager for key export tooling"""

    def __init__(self, config: Optional[ExportConfig] = None):
        self.config = config or ExportConfig()
        self._validate()

    @classmethod
    def from_json(cls, json_string: str) -> 'ExportConfigManager':
        """Load configuration from JSON string"""
        try:
            data = json.loads(json_string)
            config = cls._parse_config_dict(data)
            return cls(config)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Failed to parse configuration JSON: {e}", "PARSE_ERROR")
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ConfigError(f"Invalid configuration format: {e}", "INVALID_FORMAT")

    @classmethod
    def from_file(cls, file_path: Union[str, Path]) -> 'ExportConfigManager':
        """Load configuration from file"""
        path = Path(file_path)
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}", "FILE_NOT_FOUND")
        try:
            with open(path, 'r', encoding='utf-8') as f:
                json_string = f.read()
        except OSError as e:
            raise ConfigError(f"Failed to read configuration file: {e}", "FILE_ERROR")
        return cls.from_json(json_string)

    @classmethod
    def load_default(cls) -> 'ExportConfigManager':
        """Load configuration from $KEYSTORE_EXPORT_CONFIG, or built-in defaults"""
        config_path = os.environ.get(CONFIG_PATH_ENV_VAR)
        if config_path:
            return cls.from_file(config_path)
        return cls()

    def get_scrypt_params(self) -> ScryptParams:
        """Get scrypt parameters for exports"""
        return self.config.scrypt.to_params()

    def get_logging_config(self) -> LoggingConfig:
        """Get logging configuration"""
        return self.config.logging

    def _validate(self) -> None:
        """Validate the configuration"""
        scrypt = self.config.scrypt
        if scrypt.profile not in SCRYPT_PROFILES:
            raise ConfigError(f"Unknown scrypt profile '{scrypt.profile}'", "INVALID_PROFILE")

        for name in ('n', 'r', 'p'):
            value = getattr(scrypt, name)
            if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value <= 0):
                raise ConfigError(f"Scrypt {name} must be a positive integer", "INVALID_SCRYPT_CONFIG")

        if self.config.logging.level.upper() not in VALID_LOG_LEVELS:
            raise ConfigError(f"Invalid log level '{self.config.logging.level}'", "INVALID_LOG_LEVEL")

    @staticmethod
    def _parse_config_dict(data: Dict[str, Any]) -> ExportConfig:
        """Parse configuration dictionary into structured objects"""
        scrypt_config = ScryptConfig(**data.get('scrypt', {}))
        logging_config = LoggingConfig(**data.get('logging', {}))
        return ExportConfig(scrypt=scrypt_config, logging=logging_config)


def configure_logging(config: LoggingConfig) -> None:
    """Apply logging configuration to the package logger"""
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(STRUCTURED_LOG_FORMAT if config.structured else PLAIN_LOG_FORMAT))

    package_logger = logging.getLogger('keystore_export')
    package_logger.handlers = [handler]
    package_logger.setLevel(config.level.upper())


def load_config_from_json(json_string: str) -> ExportConfigManager:
    """Load configuration from JSON string"""
    return ExportConfigManager.from_json(json_string)


def load_config_from_file(file_path: Union[str, Path]) -> ExportConfigManager:
    """Load configuration from file"""
    return ExportConfigManager.from_file(file_path)


def load_default_config() -> ExportConfigManager:
    """Load default configuration"""
    return ExportConfigManager.load_default()
