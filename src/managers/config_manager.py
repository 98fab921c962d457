"""
Config Manager

Loads the node manager YAML configuration into an immutable AppConfig.
"""

from __future__ import annotations

import yaml
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional, Union

from models.config import AppConfig, MaintenanceJobConfig, VolumeSnapshotJobConfig
from models.errors import ConfigError
from utils.durations import parse_duration
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.CONFIG)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "config.yaml"

_MANAGER_KEYS = {"http_addr", "grpc_addr", "startup_delay", "connection_watchdog", "readiness_max_latency"}
_JOB_KEYS = {"period", "modulo", "hostname_match"}
_VOLUME_JOB_KEYS = {"period", "modulo", "specific_blocks"}
_MAINTENANCE_KEYS = {"auto_backup", "auto_snapshot", "auto_volume_snapshot"}


class ConfigManager:
    """
    YAML configuration loader

    Layout:
        manager:
          http_addr: 127.0.0.1:8080
          grpc_addr: 0.0.0.0:9000
          startup_delay: 10s
          connection_watchdog: true
          readiness_max_latency: 5s
        maintenance:
          auto_backup:   {period: 24h, modulo: 0, hostname_match: node-0}
          auto_snapshot: {period: 0, modulo: 100000, hostname_match: ""}
          auto_volume_snapshot: {period: 0, modulo: 0, specific_blocks: [1000, 2000]}

    Example:
        config = ConfigManager("config/config.yaml").load()
        config.auto_backup.enabled
    """

    def __init__(self, config_path: Union[str, Path, None] = None):
        self.config_path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
        self.data: Dict[str, Any] = {}

    def load(self) -> AppConfig:
        """
        Read and validate the configuration file.

        A missing file falls back to defaults; anything unreadable or invalid
        raises ConfigError.
        """
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                self.data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            log.warn("Config file not found, using defaults", path=str(self.config_path))
            self.data = {}
        except (OSError, yaml.YAMLError) as ex:
            raise ConfigError(
                f"unable to read config file '{self.config_path}': {ex}",
                path=str(self.config_path),
            ) from ex

        config = self.parse(self.data)
        log.info("Configuration loaded", path=str(self.config_path))
        return config

    @classmethod
    def parse(cls, data: Dict[str, Any]) -> AppConfig:
        """Build an AppConfig from an already-parsed mapping."""
        if not isinstance(data, dict):
            raise ConfigError("config root must be a mapping")
        _reject_unknown("", data, {"manager", "maintenance"})

        manager = _section(data, "manager")
        maintenance = _section(data, "maintenance")
        _reject_unknown("manager", manager, _MANAGER_KEYS)
        _reject_unknown("maintenance", maintenance, _MAINTENANCE_KEYS)

        defaults = AppConfig()
        return AppConfig(
            http_addr=_http_addr("manager.http_addr", manager.get("http_addr"), defaults.http_addr),
            grpc_addr=_string("manager.grpc_addr", manager.get("grpc_addr")),
            startup_delay=_duration("manager.startup_delay", manager.get("startup_delay")),
            connection_watchdog=_bool("manager.connection_watchdog", manager.get("connection_watchdog", False)),
            readiness_max_latency=_duration(
                "manager.readiness_max_latency",
                manager.get("readiness_max_latency", defaults.readiness_max_latency),
            ),
            auto_backup=_job("maintenance.auto_backup", _section(maintenance, "auto_backup")),
            auto_snapshot=_job("maintenance.auto_snapshot", _section(maintenance, "auto_snapshot")),
            auto_volume_snapshot=_volume_job(
                "maintenance.auto_volume_snapshot", _section(maintenance, "auto_volume_snapshot")
            ),
        )


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping", key=key)
    return value


def _reject_unknown(where: str, data: Dict[str, Any], allowed: set) -> None:
    unknown = sorted(set(data) - allowed)
    if unknown:
        location = f" in '{where}'" if where else ""
        raise ConfigError(f"unknown config keys{location}: {', '.join(map(str, unknown))}", keys=unknown)


def _string(key: str, value: Any, default: str = "") -> str:
    if value is None:
        return default
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a string, got {value!r}", key=key)
    return value or default


def _http_addr(key: str, value: Any, default: str) -> str:
    addr = _string(key, value, default)
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit() or int(port) > 65535:
        raise ConfigError(f"'{key}' must be host:port, got {addr!r}", key=key)
    return addr


def _duration(key: str, value: Any) -> timedelta:
    try:
        return parse_duration(value)
    except ValueError as ex:
        raise ConfigError(f"'{key}': {ex}", key=key) from ex


def _int(key: str, value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(f"'{key}' must be a non-negative integer, got {value!r}", key=key)
    return value


def _bool(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{key}' must be true or false, got {value!r}", key=key)
    return value


def _job(key: str, data: Dict[str, Any]) -> MaintenanceJobConfig:
    _reject_unknown(key, data, _JOB_KEYS)
    hostname_match: Optional[str] = data.get("hostname_match")
    return MaintenanceJobConfig(
        period=_duration(f"{key}.period", data.get("period")),
        modulo=_int(f"{key}.modulo", data.get("modulo")),
        hostname_match=str(hostname_match or ""),
    )


def _volume_job(key: str, data: Dict[str, Any]) -> VolumeSnapshotJobConfig:
    _reject_unknown(key, data, _VOLUME_JOB_KEYS)
    blocks = data.get("specific_blocks") or []
    if not isinstance(blocks, list):
        raise ConfigError(f"'{key}.specific_blocks' must be a list", key=key)
    return VolumeSnapshotJobConfig(
        period=_duration(f"{key}.period", data.get("period")),
        modulo=_int(f"{key}.modulo", data.get("modulo")),
        specific_blocks=tuple(_int(f"{key}.specific_blocks[{i}]", b) for i, b in enumerate(blocks)),
    )
