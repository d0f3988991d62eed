"""Persisted key-value settings (the rosbridge URL survives restarts)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from zeusbridge._constants import DEFAULT_URL, ROSBRIDGE_URL_KEY
from zeusbridge.config import BridgeConfig
from zeusbridge.exceptions import BridgeConfigError

_logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_DIR = Path("~/.config/zeusbridge").expanduser()
DEFAULT_SETTINGS_PATH = DEFAULT_SETTINGS_DIR / "settings.yaml"


class SettingsStore:
    """Flat YAML key-value store.

    The file is read on every access and rewritten on every change, so two
    stores on the same path stay consistent.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = (path or DEFAULT_SETTINGS_PATH).expanduser()

    @classmethod
    def from_config(cls, config: BridgeConfig) -> SettingsStore:
        return cls(config.settings_path)

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)

    def load_url(self, default: str = DEFAULT_URL) -> str:
        value = self.get(ROSBRIDGE_URL_KEY)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return default

    def save_url(self, url: str) -> None:
        if not url.strip():
            raise BridgeConfigError("Refusing to persist an empty bus URL")
        self.set(ROSBRIDGE_URL_KEY, url.strip())
        _logger.info("Saved bus URL %s to %s", url.strip(), self._path)

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise BridgeConfigError(f"Settings file {self._path} is not valid YAML: {exc}") from exc
        if not isinstance(data, dict):
            raise BridgeConfigError(f"Settings file {self._path} must contain a mapping")
        return data

    def _save(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("w", encoding="utf-8") as handle:
            yaml.safe_dump(data, handle, sort_keys=False)


def resolve_url(config: BridgeConfig, store: SettingsStore | None = None) -> str:
    """The persisted bus URL if one is saved, else ``config.url``."""
    store = store or SettingsStore.from_config(config)
    return store.load_url(config.url)
