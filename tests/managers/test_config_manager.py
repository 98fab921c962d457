"""
Tests for YAML configuration loading.
"""

from datetime import timedelta

import pytest

from managers.config_manager import DEFAULT_CONFIG_PATH, ConfigManager
from models.config import AppConfig
from models.errors import ConfigError

FULL_CONFIG = """
manager:
  http_addr: 0.0.0.0:8080
  grpc_addr: 0.0.0.0:9000
  startup_delay: 10s
  connection_watchdog: true
  readiness_max_latency: 1m30s
maintenance:
  auto_backup:
    period: 24h
    hostname_match: node-0
  auto_snapshot:
    modulo: 100000
  auto_volume_snapshot:
    specific_blocks: [1000, 2000]
"""


def write(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_full_config(tmp_path):
    config = ConfigManager(write(tmp_path, FULL_CONFIG)).load()

    assert config.http_addr == "0.0.0.0:8080"
    assert config.grpc_addr == "0.0.0.0:9000"
    assert config.startup_delay == timedelta(seconds=10)
    assert config.connection_watchdog is True
    assert config.readiness_max_latency == timedelta(seconds=90)

    assert config.auto_backup.period == timedelta(hours=24)
    assert config.auto_backup.hostname_match == "node-0"
    assert config.auto_backup.enabled
    assert config.auto_snapshot.modulo == 100_000
    assert config.auto_snapshot.enabled
    assert config.auto_volume_snapshot.specific_blocks == (1000, 2000)
    assert config.auto_volume_snapshot.enabled


def test_missing_file_uses_defaults(tmp_path):
    config = ConfigManager(tmp_path / "absent.yaml").load()

    assert config == AppConfig()
    assert not config.auto_backup.enabled
    assert not config.auto_snapshot.enabled
    assert not config.auto_volume_snapshot.enabled


def test_empty_file_uses_defaults(tmp_path):
    assert ConfigManager(write(tmp_path, "")).load() == AppConfig()


def test_shipped_config_loads():
    config = ConfigManager(DEFAULT_CONFIG_PATH).load()

    assert config.http_addr == "127.0.0.1:8080"
    assert config.auto_backup == AppConfig().auto_backup


@pytest.mark.parametrize(
    "text",
    [
        "manager:\n  http_adr: typo\n",
        "extra: 1\n",
        "maintenance:\n  auto_backup:\n    specific_blocks: [1]\n",
        "manager:\n  startup_delay: soon\n",
        "manager:\n  connection_watchdog: 'yes'\n",
        "maintenance:\n  auto_snapshot:\n    modulo: -1\n",
        "maintenance:\n  auto_volume_snapshot:\n    specific_blocks: 12\n",
        "manager: [1, 2]\n",
        "- just\n- a list\n",
        "manager:\n  http_addr: 8080\n",
        "manager:\n  http_addr: localhost\n",
        "manager:\n  http_addr: 127.0.0.1:99999\n",
        "manager:\n  grpc_addr: 9000\n",
    ],
)
def test_invalid_config_rejected(tmp_path, text):
    with pytest.raises(ConfigError) as exc_info:
        ConfigManager(write(tmp_path, text)).load()

    assert exc_info.value.code == "INVALID_CONFIG"


def test_malformed_yaml(tmp_path):
    with pytest.raises(ConfigError) as exc_info:
        ConfigManager(write(tmp_path, "manager: [unclosed\n")).load()

    assert exc_info.value.details["path"].endswith("config.yaml")


def test_parse_without_file():
    config = ConfigManager.parse({"manager": {"startup_delay": 2.5}})

    assert config.startup_delay == timedelta(seconds=2.5)


def test_blank_addresses_use_defaults(tmp_path):
    config = ConfigManager(write(tmp_path, "manager:\n  http_addr:\n  grpc_addr:\n")).load()

    assert config.http_addr == "127.0.0.1:8080"
    assert config.grpc_addr == ""
