from __future__ import annotations

from pathlib import Path

import pytest

from zeusbridge.config import BridgeConfig
from zeusbridge.exceptions import BridgeConfigError


def test_defaults() -> None:
    config = BridgeConfig()
    assert config.url == "ws://localhost:9090"
    assert config.reconnect_base_delay == 2.0
    assert config.reconnect_max_attempts == 5
    assert config.command_rate_hz == 10.0
    assert config.cmd_vel_topic == "/cmd_vel"


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("ZEUS_URL", "ws://10.0.0.5:9090")
    monkeypatch.setenv("ZEUS_RECONNECT_BASE_DELAY", "0.5")
    monkeypatch.setenv("ZEUS_RECONNECT_MAX_ATTEMPTS", "3")
    monkeypatch.setenv("ZEUS_COMMAND_RATE_HZ", "20")
    monkeypatch.setenv("ZEUS_SETTINGS_PATH", str(tmp_path / "settings.yaml"))

    config = BridgeConfig.from_env()

    assert config.url == "ws://10.0.0.5:9090"
    assert config.reconnect_base_delay == 0.5
    assert config.reconnect_max_attempts == 3
    assert config.command_rate_hz == 20.0
    assert config.settings_path == tmp_path / "settings.yaml"


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ZEUS_URL", "ws://env:9090")
    assert BridgeConfig.from_env(url="ws://explicit:9090").url == "ws://explicit:9090"


def test_from_env_rejects_non_numbers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ZEUS_RECONNECT_MAX_ATTEMPTS", "five")
    with pytest.raises(BridgeConfigError):
        BridgeConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"url": " "},
        {"reconnect_base_delay": 0},
        {"reconnect_max_attempts": -1},
        {"command_rate_hz": -10},
        {"pointer_radius": 0},
        {"heartbeat": 0},
    ],
)
def test_invalid_values_rejected(kwargs: dict) -> None:
    with pytest.raises(BridgeConfigError):
        BridgeConfig(**kwargs)
