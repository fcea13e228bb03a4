"""Configuration loading and validation for ethtool-stats."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

FORMATS = ("remote_write", "text")
STATS_BACKENDS = ("ethtool", "netio")


@dataclass
class DiscoveryConfig:
    """Interface discovery settings."""

    neighbor_table: str = "/proc/net/arp"


@dataclass
class StatsConfig:
    """Statistics backend settings."""

    backend: str = "ethtool"


@dataclass
class PushConfig:
    """Metrics endpoint settings."""

    url: str = ""
    format: str = "remote_write"
    # 0 disables the timeout.
    timeout_seconds: float = 10.0


@dataclass
class SchedulerConfig:
    """Collection loop settings."""

    interval_seconds: float = 30.0


@dataclass
class ExporterConfig:
    """Top-level ethtool-stats configuration."""

    debug: bool = False
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    stats: StatsConfig = field(default_factory=StatsConfig)
    push: PushConfig = field(default_factory=PushConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)

    def validate(self) -> None:
        """Raise :class:`ConfigError` if any value is out of range."""
        if self.push.format not in FORMATS:
            raise ConfigError(
                f"unknown push format {self.push.format!r} (expected one of {', '.join(FORMATS)})"
            )
        if self.stats.backend not in STATS_BACKENDS:
            raise ConfigError(
                f"unknown stats backend {self.stats.backend!r} "
                f"(expected one of {', '.join(STATS_BACKENDS)})"
            )
        if self.scheduler.interval_seconds <= 0:
            raise ConfigError("scheduler interval must be positive")
        if self.push.timeout_seconds < 0:
            raise ConfigError("push timeout must not be negative")


_NUMBER_FIELDS = ("interval_seconds", "timeout_seconds")


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _coerce(key: str, value: Any, source: str) -> Any:
    """Convert a raw YAML or environment value to the type of field *key*."""
    if key in _NUMBER_FIELDS:
        if isinstance(value, bool):
            raise ConfigError(f"{source} must be a number, got {value!r}")
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{source} must be a number, got {value!r}") from None
    if key == "debug":
        if isinstance(value, str):
            return _parse_bool(value)
        if isinstance(value, (bool, int)):
            return bool(value)
        raise ConfigError(f"{source} must be a boolean, got {value!r}")
    if not isinstance(value, str):
        raise ConfigError(f"{source} must be a string, got {value!r}")
    return value


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides using the ETHTOOL_STATS_ prefix."""
    env_map = {
        "ETHTOOL_STATS_DEBUG": ("debug",),
        "ETHTOOL_STATS_NEIGHBOR_TABLE": ("discovery", "neighbor_table"),
        "ETHTOOL_STATS_STATS_BACKEND": ("stats", "backend"),
        "ETHTOOL_STATS_PROM_URL": ("push", "url"),
        "ETHTOOL_STATS_FORMAT": ("push", "format"),
        "ETHTOOL_STATS_TIMEOUT": ("push", "timeout_seconds"),
        "ETHTOOL_STATS_INTERVAL": ("scheduler", "interval_seconds"),
    }
    for env_key, path in env_map.items():
        value = os.environ.get(env_key)
        if value is None:
            continue
        obj = data
        for part in path[:-1]:
            if not isinstance(obj.get(part), dict):
                obj[part] = {}
            obj = obj[part]
        obj[path[-1]] = _coerce(path[-1], value, env_key)
    return data


def _section(cls: type, name: str, data: Any) -> Any:
    if not isinstance(data, dict):
        return cls()
    return cls(**{
        k: _coerce(k, v, f"{name}.{k}")
        for k, v in data.items()
        if k in cls.__dataclass_fields__
    })


def _dict_to_config(data: dict[str, Any]) -> ExporterConfig:
    """Convert a raw dictionary to an ExporterConfig dataclass."""
    return ExporterConfig(
        debug=_coerce("debug", data.get("debug", False), "debug"),
        discovery=_section(DiscoveryConfig, "discovery", data.get("discovery", {})),
        stats=_section(StatsConfig, "stats", data.get("stats", {})),
        push=_section(PushConfig, "push", data.get("push", {})),
        scheduler=_section(SchedulerConfig, "scheduler", data.get("scheduler", {})),
    )


def load_config(path: str | Path | None = None) -> ExporterConfig:
    """Load configuration from a YAML file with environment overrides.

    Looks for ``ethtool_stats.yaml`` in the current directory if *path* is None.
    A missing file is not an error; defaults apply.
    """
    data: dict[str, Any] = {}
    if path is None:
        path = Path("ethtool_stats.yaml")
    else:
        path = Path(path)

    if path.exists():
        try:
            with open(path, encoding="utf-8") as fh:
                loaded = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
        if isinstance(loaded, dict):
            data = loaded

    data = _apply_env_overrides(data)
    return _dict_to_config(data)
