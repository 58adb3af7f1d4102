"""Configuration loader for perfload."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .schema import PerfloadConfig


class ConfigError(Exception):
    """Base exception for configuration errors."""

    pass


class ConfigFileNotFoundError(ConfigError):
    """Raised when configuration file is not found."""

    pass


class ConfigParseError(ConfigError):
    """Raised when configuration file cannot be parsed."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []


def load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file and return as dictionary.

    Args:
        path: Path to YAML file

    Returns:
        Dictionary containing parsed YAML

    Raises:
        ConfigFileNotFoundError: If file doesn't exist
        ConfigParseError: If YAML parsing fails or the document is not a mapping
    """
    if not path.exists():
        raise ConfigFileNotFoundError(f"Configuration file not found: {path}")

    try:
        with open(path) as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Failed to parse YAML: {e}")  # noqa: B904

    if not content:
        return {}
    if not isinstance(content, dict):
        raise ConfigParseError(f"Expected a mapping at the top of {path}")
    return content


def load_config(path: str | Path) -> PerfloadConfig:
    """Load and validate perfload configuration from file.

    Args:
        path: Path to configuration YAML file

    Returns:
        Validated PerfloadConfig object

    Raises:
        ConfigFileNotFoundError: If file doesn't exist
        ConfigParseError: If YAML parsing fails
        ConfigValidationError: If validation fails
    """
    path = Path(path)
    data = load_yaml(path)

    try:
        return PerfloadConfig.model_validate(data)
    except ValidationError as e:
        errors = e.errors()
        error_messages = []
        for err in errors:
            loc = ".".join(str(x) for x in err["loc"])
            msg = err["msg"]
            error_messages.append(f"  - {loc}: {msg}")

        raise ConfigValidationError(  # noqa: B904
            "Configuration validation failed:\n" + "\n".join(error_messages),
            errors=[dict(e) for e in errors],  # type: ignore[call-overload]
        )


def save_config(config: PerfloadConfig, path: str | Path) -> None:
    """Save configuration to YAML file.

    Args:
        config: PerfloadConfig object
        path: Path to save YAML file
    """
    path = Path(path)
    data = config.model_dump(mode="json", exclude_defaults=False)

    with open(path, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, indent=2)


def generate_example_config_yaml(name: str = "fpa-perf") -> str:
    """Generate example configuration YAML with comments.

    Only the job name is uncommented; every other option is shown
    commented-out with its default so users can discover and enable it.

    Args:
        name: Value for the ``name`` field

    Returns:
        String containing commented YAML configuration
    """
    return f"""# perfload Configuration
# ======================
#
# LEGEND:
#   Uncommented fields  = REQUIRED or explicitly set values
#   # field: value      = Available option with its DEFAULT value.
#                         When commented out, this default is still ACTIVE.

# REQUIRED: Name of the performance job being loaded
name: {name}

## Relational store
# database:
#   path: ./perfload-output/perf.db
#   ddl_script: null            # null = packaged ddl.sql
#   timeout_seconds: 30.0

## Jenkins artifact source (needed by 'perfload run' only)
# jenkins:
#   url: https://jenkins.example/job/perf/lastSuccessfulBuild/api/json
#   download_base_url: https://jenkins.example/job/perf/lastSuccessfulBuild/artifact/
#   username: jenkins-user
#   api_token: ""
#   timeout_seconds: 60.0
#   verify_tls: true

## Where downloaded spreadsheets are stored
# save_dir: ./perfload-output/downloads

## DEBUG, INFO, WARNING or ERROR
# log_level: INFO
"""
