"""Frozen dataclasses for configuration and YAML loaders with env-var interpolation."""

from __future__ import annotations

import os
import re
import types
import typing
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .codec import from_dict
from .exceptions import ConfigError
from .topology.cluster import ClusterTopology

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _interpolate_env(value: str) -> str:
    """Replace ${ENV_VAR} placeholders with environment variable values."""

    def _replace(match: re.Match) -> str:
        env_key = match.group(1)
        env_val = os.environ.get(env_key)
        if env_val is None:
            raise ConfigError(f"Environment variable '{env_key}' is not set")
        return env_val

    return _ENV_PATTERN.sub(_replace, value)


def _walk_and_interpolate(obj: Any) -> Any:
    """Recursively interpolate env vars in strings throughout a nested structure."""
    if isinstance(obj, str):
        return _interpolate_env(obj)
    if isinstance(obj, dict):
        return {k: _walk_and_interpolate(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_walk_and_interpolate(v) for v in obj]
    return obj


@dataclass(frozen=True)
class ClusterConfig:
    name: str = ""
    resource_group: str = ""
    location: str = ""


@dataclass(frozen=True)
class ValidationConfig:
    max_os_disk_size_gb: int = 2048
    require_role_subnets: bool = True


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    format: str = "json"  # "json" or "text"


@dataclass(frozen=True)
class AppConfig:
    cluster: ClusterConfig = field(default_factory=ClusterConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _get_dataclass_type(ft: Any) -> type | None:
    """Return the underlying dataclass type from a type annotation (handles Optional/X|None)."""
    if isinstance(ft, type) and hasattr(ft, "__dataclass_fields__"):
        return ft
    if isinstance(ft, types.UnionType) or getattr(ft, "__origin__", None) is typing.Union:
        args = [a for a in ft.__args__ if a is not type(None)]
        if len(args) == 1 and isinstance(args[0], type) and hasattr(args[0], "__dataclass_fields__"):
            return args[0]
    return None


def _build_nested(cls: type, data: dict[str, Any]) -> Any:
    """Construct a frozen dataclass, recursively building nested dataclass fields."""
    if not isinstance(data, dict):
        return data
    field_types = typing.get_type_hints(cls)
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        if key not in field_types:
            continue
        dc_type = _get_dataclass_type(field_types[key])
        if dc_type is not None and isinstance(value, dict):
            kwargs[key] = _build_nested(dc_type, value)
        else:
            kwargs[key] = value
    return cls(**kwargs)


def _read_yaml_mapping(path: str | Path) -> dict[str, Any]:
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Configuration file not found: {path}")

    with open(path) as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a YAML mapping")

    return _walk_and_interpolate(raw)


def load_config(path: str | Path) -> AppConfig:
    """Load and validate configuration from a YAML file."""
    config = _build_nested(AppConfig, _read_yaml_mapping(path))
    _validate(config)
    return config


def load_topology(path: str | Path, config: AppConfig | None = None) -> ClusterTopology:
    """Load a cluster topology document from a YAML file.

    When ``config`` is given, its cluster section fills in the name,
    resource group and location the document leaves blank.
    """
    topology = from_dict(ClusterTopology, _read_yaml_mapping(path))
    if config is not None:
        topology.name = topology.name or config.cluster.name
        topology.resource_group = topology.resource_group or config.cluster.resource_group
        topology.location = topology.location or config.cluster.location
    return topology


def _validate(config: AppConfig) -> None:
    """Validate configuration values."""
    if not isinstance(config.cluster.name, str) or not config.cluster.name.strip():
        raise ConfigError("cluster.name is required")

    if str(config.logging.level).upper() not in _LOG_LEVELS:
        raise ConfigError(f"logging.level must be one of {', '.join(_LOG_LEVELS)}")

    if config.logging.format not in ("json", "text"):
        raise ConfigError("logging.format must be 'json' or 'text'")

    max_disk = config.validation.max_os_disk_size_gb
    if isinstance(max_disk, bool) or not isinstance(max_disk, int) or max_disk <= 0:
        raise ConfigError("validation.max_os_disk_size_gb must be a positive integer")
