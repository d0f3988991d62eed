"""Bridge configuration for zeusbridge."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from zeusbridge._constants import (
    CMD_VEL_TOPIC,
    DEFAULT_COMMAND_RATE_HZ,
    DEFAULT_POINTER_RADIUS,
    DEFAULT_RECONNECT_BASE_DELAY,
    DEFAULT_RECONNECT_MAX_ATTEMPTS,
    DEFAULT_URL,
)
from zeusbridge.exceptions import BridgeConfigError


def _env_float(env: Mapping[str, str], key: str) -> float | None:
    value = env.get(key)
    if value is None or not value.strip():
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise BridgeConfigError(f"{key} must be a number, got {value!r}") from exc


def _env_int(env: Mapping[str, str], key: str) -> int | None:
    value = env.get(key)
    if value is None or not value.strip():
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise BridgeConfigError(f"{key} must be an integer, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class BridgeConfig:
    """Bridge configuration.

    Read once at startup and passed explicitly into
    :class:`~zeusbridge.connection.BusConnection` and
    :class:`~zeusbridge.teleop.VelocityController`.

    Parameters
    ----------
    url : str
        rosbridge WebSocket URL (``ws://host:port``).
    reconnect_base_delay : float
        Delay in seconds before the first reconnection attempt.  Each
        further attempt doubles it.
    reconnect_max_attempts : int
        Number of reconnection attempts before the connection settles in
        the terminal error state.
    connect_timeout : float
        Seconds to wait for the WebSocket handshake.
    heartbeat : float or None
        WebSocket ping interval in seconds, ``None`` to disable.
    service_timeout : float
        Default seconds to wait for a rosbridge service response.
    command_rate_hz : float
        Cadence of the held-key velocity publish loop.
    max_linear_speed : float
        Scale applied to the normalized linear command (m/s).
    max_angular_speed : float
        Scale applied to the normalized angular command (rad/s).
    pointer_radius : float
        Radius of the virtual joystick, in the pointer's own units.
    cmd_vel_topic : str
        Velocity command topic.
    settings_path : Path or None
        YAML settings file holding the persisted bus URL.  ``None`` selects
        ``~/.config/zeusbridge/settings.yaml``.
    """

    url: str = DEFAULT_URL
    reconnect_base_delay: float = DEFAULT_RECONNECT_BASE_DELAY
    reconnect_max_attempts: int = DEFAULT_RECONNECT_MAX_ATTEMPTS
    connect_timeout: float = 10.0
    heartbeat: float | None = None
    service_timeout: float = 5.0
    command_rate_hz: float = DEFAULT_COMMAND_RATE_HZ
    max_linear_speed: float = 1.0
    max_angular_speed: float = 1.0
    pointer_radius: float = DEFAULT_POINTER_RADIUS
    cmd_vel_topic: str = CMD_VEL_TOPIC
    settings_path: Path | None = None

    def __post_init__(self) -> None:
        if not self.url.strip():
            raise BridgeConfigError("url must be non-empty")
        for name in (
            "reconnect_base_delay",
            "connect_timeout",
            "service_timeout",
            "command_rate_hz",
            "max_linear_speed",
            "max_angular_speed",
            "pointer_radius",
        ):
            if getattr(self, name) <= 0:
                raise BridgeConfigError(f"{name} must be positive, got {getattr(self, name)}")
        if self.reconnect_max_attempts < 0:
            raise BridgeConfigError("reconnect_max_attempts must be >= 0")
        if self.heartbeat is not None and self.heartbeat <= 0:
            raise BridgeConfigError("heartbeat must be positive or None")

    @classmethod
    def from_env(cls, **overrides: Any) -> BridgeConfig:
        """Create configuration from environment variables.

        Reads ``ZEUS_URL``, ``ZEUS_RECONNECT_BASE_DELAY``,
        ``ZEUS_RECONNECT_MAX_ATTEMPTS``, ``ZEUS_CONNECT_TIMEOUT``,
        ``ZEUS_HEARTBEAT``, ``ZEUS_SERVICE_TIMEOUT``,
        ``ZEUS_COMMAND_RATE_HZ``, ``ZEUS_MAX_LINEAR_SPEED``,
        ``ZEUS_MAX_ANGULAR_SPEED``, ``ZEUS_POINTER_RADIUS``,
        ``ZEUS_CMD_VEL_TOPIC`` and ``ZEUS_SETTINGS_PATH``.  Explicit
        keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        BridgeConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        _ENV_STR_MAP = {
            "ZEUS_URL": "url",
            "ZEUS_CMD_VEL_TOPIC": "cmd_vel_topic",
        }
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_FLOAT_MAP = {
            "ZEUS_RECONNECT_BASE_DELAY": "reconnect_base_delay",
            "ZEUS_CONNECT_TIMEOUT": "connect_timeout",
            "ZEUS_HEARTBEAT": "heartbeat",
            "ZEUS_SERVICE_TIMEOUT": "service_timeout",
            "ZEUS_COMMAND_RATE_HZ": "command_rate_hz",
            "ZEUS_MAX_LINEAR_SPEED": "max_linear_speed",
            "ZEUS_MAX_ANGULAR_SPEED": "max_angular_speed",
            "ZEUS_POINTER_RADIUS": "pointer_radius",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            parsed = _env_float(env, env_key)
            if parsed is not None:
                config_kwargs[field_name] = parsed

        attempts = _env_int(env, "ZEUS_RECONNECT_MAX_ATTEMPTS")
        if attempts is not None:
            config_kwargs["reconnect_max_attempts"] = attempts

        settings_env = env.get("ZEUS_SETTINGS_PATH")
        if settings_env:
            config_kwargs["settings_path"] = Path(settings_env).expanduser()

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
