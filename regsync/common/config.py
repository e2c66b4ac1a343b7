"""Configuration management for regsync.

Handles loading of YAML configuration files and conversion of the
raw options into the typed bundle a sync run consumes.
"""

import os
import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .errors import ConfigurationError

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

DEFAULT_TIMEOUT = 60.0

AFTER_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass
class RegistryConfig:
    """Connection settings for one registry."""

    url: str = ""
    token: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None


@dataclass
class LoggingConfig:
    """Logging settings for the CLI."""

    level: str = "INFO"
    log_dir: str = "/var/log/regsync"
    file_logging: bool = False


@dataclass
class SyncConfig:
    """Options bundle for a single package sync run."""

    source: RegistryConfig = field(default_factory=RegistryConfig)
    target: RegistryConfig = field(default_factory=RegistryConfig)
    package: str = ""
    after: datetime = EPOCH
    only_latest_from_each_major: bool = False
    timeout: float = DEFAULT_TIMEOUT
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def parse_after(value: Union[None, str, date, datetime]) -> datetime:
    """Normalize an ``after`` cutoff to an aware UTC datetime.

    Args:
        value: None, a YYYY-MM-DD string, a date or a datetime

    Returns:
        Timezone-aware datetime (EPOCH when value is None)

    Raises:
        ConfigurationError: If a string is not in YYYY-MM-DD format
    """
    if value is None or value == "":
        return EPOCH
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        if not AFTER_DATE_PATTERN.match(value.strip()):
            raise ConfigurationError(
                "After date must be in the format YYYY-MM-DD", stage="configure"
            )
        try:
            parsed = datetime.strptime(value.strip(), "%Y-%m-%d")
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid after date: {value}", stage="configure"
            ) from e
        return parsed.replace(tzinfo=timezone.utc)
    raise ConfigurationError(
        f"Unsupported after value: {value!r}", stage="configure"
    )


def parse_registry_config(registry_dict: Dict[str, Any]) -> RegistryConfig:
    """Parse a registry configuration dictionary.

    Args:
        registry_dict: Registry configuration dictionary

    Returns:
        RegistryConfig instance
    """
    return RegistryConfig(
        url=registry_dict.get("url", "") or "",
        token=registry_dict.get("token") or None,
        username=registry_dict.get("username") or None,
        password=registry_dict.get("password") or None,
    )


def parse_logging_config(logging_dict: Dict[str, Any]) -> LoggingConfig:
    """Parse logging configuration dictionary.

    Args:
        logging_dict: Logging configuration dictionary

    Returns:
        LoggingConfig instance
    """
    return LoggingConfig(
        level=logging_dict.get("level", "INFO"),
        log_dir=logging_dict.get("dir", "/var/log/regsync"),
        file_logging=bool(logging_dict.get("file", False)),
    )


def parse_config(config_dict: Dict[str, Any]) -> SyncConfig:
    """Parse the full configuration dictionary.

    Args:
        config_dict: Full configuration dictionary

    Returns:
        SyncConfig instance

    Raises:
        ConfigurationError: If after or timeout values are malformed
    """
    timeout = config_dict.get("timeout", DEFAULT_TIMEOUT)
    try:
        timeout = float(timeout)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Invalid timeout: {timeout!r}", stage="configure"
        ) from e

    return SyncConfig(
        source=parse_registry_config(config_dict.get("source") or {}),
        target=parse_registry_config(config_dict.get("target") or {}),
        package=config_dict.get("package", "") or "",
        after=parse_after(config_dict.get("after")),
        only_latest_from_each_major=bool(
            config_dict.get("only_latest_from_each_major", False)
        ),
        timeout=timeout,
        logging=parse_logging_config(config_dict.get("logging") or {}),
    )


def merge_overrides(config: SyncConfig, overrides: Dict[str, Any]) -> SyncConfig:
    """Apply command-line overrides on top of a parsed configuration.

    Keys use the flat option names (``from``, ``to``, ``from_token``,
    ``to_username``, ...). None values leave the configured value alone.

    Args:
        config: Base configuration
        overrides: Flat option values

    Returns:
        New SyncConfig with overrides applied
    """

    def side(base: RegistryConfig, prefix: str, url_key: str) -> RegistryConfig:
        values = {
            "url": overrides.get(url_key),
            "token": overrides.get(f"{prefix}_token"),
            "username": overrides.get(f"{prefix}_username"),
            "password": overrides.get(f"{prefix}_password"),
        }
        return replace(base, **{k: v for k, v in values.items() if v is not None})

    result = replace(
        config,
        source=side(config.source, "from", "from"),
        target=side(config.target, "to", "to"),
    )

    if overrides.get("package") is not None:
        result = replace(result, package=overrides["package"])
    if overrides.get("after") is not None:
        result = replace(result, after=parse_after(overrides["after"]))
    if overrides.get("only_latest_from_each_major"):
        result = replace(result, only_latest_from_each_major=True)
    if overrides.get("timeout") is not None:
        result = replace(result, timeout=float(overrides["timeout"]))

    log_values = {
        "level": overrides.get("log_level"),
        "log_dir": overrides.get("log_dir"),
    }
    if overrides.get("log_dir") is not None:
        log_values["file_logging"] = True
    log_values = {k: v for k, v in log_values.items() if v is not None}
    if log_values:
        result = replace(result, logging=replace(result.logging, **log_values))

    return result


def load_config(config_path: str) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with config_file.open("r") as f:
        config = yaml.safe_load(f)

    if config is None:
        config = {}

    if not isinstance(config, dict):
        raise TypeError(
            f"Configuration root must be a mapping, got {type(config).__name__}"
        )

    # Credentials are usually supplied as ${VAR} references
    config = _expand_env_vars(config)

    return config


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in configuration.

    Args:
        obj: Configuration object (dict, list, str, etc.)

    Returns:
        Configuration with expanded environment variables
    """
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        return os.path.expandvars(obj)
    else:
        return obj


def load_typed_config(config_path: str) -> SyncConfig:
    """Load and parse configuration into typed dataclass.

    Args:
        config_path: Path to configuration file

    Returns:
        SyncConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
    """
    config_dict = load_config(config_path)
    return parse_config(config_dict)
