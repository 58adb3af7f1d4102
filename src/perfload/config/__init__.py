"""perfload configuration module."""

from .loader import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigParseError,
    ConfigValidationError,
    generate_example_config_yaml,
    load_config,
    save_config,
)
from .schema import DatabaseConfig, JenkinsConfig, LogLevel, PerfloadConfig

__all__ = [
    # Config classes
    "PerfloadConfig",
    "DatabaseConfig",
    "JenkinsConfig",
    # Enums
    "LogLevel",
    # Loader functions
    "load_config",
    "save_config",
    "generate_example_config_yaml",
    # Exceptions
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigParseError",
    "ConfigValidationError",
]
