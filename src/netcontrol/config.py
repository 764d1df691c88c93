"""
Configuration management for netcontrol.

This module handles loading, validation, and access to configuration settings
from configuration files and environment variables.
"""
import os
import json
from typing import Dict, Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from netcontrol.evolution.parameters import Parameters
from netcontrol.utils.errors import ConfigurationError
from netcontrol.utils.logging import logger

# Default configuration file paths
DEFAULT_CONFIG_PATHS = [
    "./netcontrol.yaml",
    "./netcontrol.yml",
    "./netcontrol.json",
    "~/.config/netcontrol/config.yaml",
]

ENV_PREFIX = "NETCONTROL_"

# Global configuration instance
_config = None


class SchedulerConfig(BaseModel):
    """Scheduler loop settings."""

    idle_delay: float = Field(30.0, ge=0, description="Seconds to wait when no run is scheduled")
    checkpoint_retries: int = Field(5, ge=0, description="Retries of a failed checkpoint write")
    retry_initial_delay: float = Field(0.5, ge=0, description="First retry delay in seconds")
    retry_max_delay: float = Field(30.0, ge=0, description="Maximum retry delay in seconds")
    reachability_method: str = Field("bfs", description="Reachability method (bfs, matrix)")

    @field_validator("reachability_method")
    @classmethod
    def validate_method(cls, v):
        """Validate reachability method."""
        allowed = ["bfs", "matrix"]
        if v.lower() not in allowed:
            raise ValueError(f"Reachability method must be one of {allowed}")
        return v.lower()


class StorageConfig(BaseModel):
    """Storage settings."""

    database_path: str = Field("~/.netcontrol/runs.db", description="SQLite database file")


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field("info", description="Logging level")
    log_file: Optional[str] = Field(None, description="Optional rotating log file")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v):
        """Validate log level."""
        allowed = ["debug", "info", "warning", "error", "critical"]
        if v.lower() not in allowed:
            raise ValueError(f"Log level must be one of {allowed}")
        return v.lower()


class NetControlConfig(BaseModel):
    """Main netcontrol configuration model."""

    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    default_parameters: Parameters = Field(
        default_factory=Parameters, description="Parameters used when a submission gives none"
    )


def expand_path(path: str) -> str:
    """Expand user and variables in path.

    Args:
        path: Path to expand

    Returns:
        Expanded path
    """
    expanded = os.path.expanduser(path)
    expanded = os.path.expandvars(expanded)
    return expanded


def find_config_file() -> Optional[str]:
    """Find the first available configuration file from default paths.

    Returns:
        Path to config file or None if not found
    """
    for path in DEFAULT_CONFIG_PATHS:
        expanded_path = expand_path(path)
        if os.path.isfile(expanded_path):
            return expanded_path
    return None


def load_config_from_file(path: str) -> Dict[str, Any]:
    """Load configuration from a YAML or JSON file.

    Args:
        path: Path to configuration file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If file does not exist
        ConfigurationError: If file format is invalid
    """
    path = expand_path(path)

    if not os.path.isfile(path):
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.debug(f"Loading configuration from {path}", component="config", operation="load_config")

    with open(path, "r") as f:
        if path.endswith((".yaml", ".yml")):
            try:
                return yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in configuration file: {e}") from e
        elif path.endswith(".json"):
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Invalid JSON in configuration file: {e}") from e
        else:
            raise ConfigurationError(f"Unsupported configuration file format: {path}")


def _convert_env_value(value: str) -> Any:
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    if value.isdigit():
        return int(value)
    if value.replace(".", "", 1).isdigit() and value.count(".") == 1:
        return float(value)
    return value


def load_config_from_env(environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Load configuration from environment variables.

    Environment variables are prefixed with NETCONTROL_ and nested keys are
    separated by a double underscore, e.g. ``NETCONTROL_SCHEDULER__IDLE_DELAY=5``.

    Args:
        environ: Environment mapping (``os.environ`` if omitted)

    Returns:
        Configuration dictionary
    """
    config: Dict[str, Any] = {}
    environ = os.environ if environ is None else environ

    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        key_parts = key[len(ENV_PREFIX):].lower().split("__")

        current = config
        for part in key_parts[:-1]:
            current = current.setdefault(part, {})
        current[key_parts[-1]] = _convert_env_value(value)

    return config


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge configuration dictionaries.

    Args:
        base: Base configuration dictionary
        override: Override configuration dictionary

    Returns:
        Merged configuration dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def load_config(
    config_file: Optional[str] = None,
    env_override: bool = True,
    defaults: Optional[Dict[str, Any]] = None,
) -> NetControlConfig:
    """Load and initialize the configuration.

    Args:
        config_file: Optional path to configuration file
        env_override: Whether environment variables override file values
        defaults: Optional default values

    Returns:
        Validated NetControlConfig instance

    Raises:
        FileNotFoundError: If the given config file is not found
        ConfigurationError: If configuration validation fails
    """
    global _config

    config_data = defaults or {}

    if config_file:
        config_data = merge_configs(config_data, load_config_from_file(config_file))
    else:
        default_file = find_config_file()
        if default_file:
            try:
                config_data = merge_configs(config_data, load_config_from_file(default_file))
            except (ConfigurationError, FileNotFoundError) as e:
                logger.warning(
                    f"Error loading default config file: {e}",
                    component="config",
                    operation="load_config",
                )

    if env_override:
        env_config = load_config_from_env()
        if env_config:
            config_data = merge_configs(config_data, env_config)
            logger.debug(
                "Applied environment variable configuration overrides",
                component="config",
                operation="load_config",
            )

    try:
        _config = NetControlConfig(**config_data)
    except Exception as e:
        logger.error(
            "Failed to load configuration",
            component="config",
            operation="load_config",
            exception=e,
        )
        raise ConfigurationError(f"Configuration validation failed: {e}") from e

    logger.set_level(_config.logging.level)
    logger.debug(
        "Configuration loaded",
        component="config",
        operation="load_config",
        context={"database": _config.storage.database_path},
    )
    return _config


def get_config() -> NetControlConfig:
    """Get the current configuration, loading it on first use.

    Returns:
        Current configuration instance
    """
    if _config is None:
        return load_config()
    return _config


def reset_config() -> None:
    """Forget the loaded configuration so the next access reloads it."""
    global _config
    _config = None


def get_config_as_dict() -> Dict[str, Any]:
    return get_config().model_dump()


def save_config(path: str) -> None:
    """Save the current configuration to a file.

    Args:
        path: Path to save configuration to (``.yaml``, ``.yml`` or ``.json``)
    """
    config = get_config_as_dict()
    path = expand_path(path)

    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)

    if path.endswith((".yaml", ".yml")):
        with open(path, "w") as f:
            yaml.safe_dump(config, f, default_flow_style=False)
    elif path.endswith(".json"):
        with open(path, "w") as f:
            json.dump(config, f, indent=2)
    else:
        raise ConfigurationError(f"Unsupported file format for saving configuration: {path}")

    logger.success(f"Configuration saved to {path}", component="config", operation="save_config")
