"""Simple JSON-based config store."""

from __future__ import annotations

import json
from pathlib import Path

DEFAULT_HOLD_DELAY_S = 1.0
DEFAULT_PROFILE = "Default"
DEFAULT_LOG_LEVEL = "INFO"


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "voiceattack" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def get_hold_delay_s(self) -> float:
        data = self._read_all()
        try:
            value = float(data.get("hold_delay_s", DEFAULT_HOLD_DELAY_S))
        except (TypeError, ValueError):
            return DEFAULT_HOLD_DELAY_S
        return value if value >= 0 else DEFAULT_HOLD_DELAY_S

    def set_hold_delay_s(self, value: float) -> None:
        if value < 0:
            raise ValueError("hold delay must be >= 0")
        self._set("hold_delay_s", float(value))

    def get_default_profile(self) -> str:
        data = self._read_all()
        return str(data.get("default_profile", DEFAULT_PROFILE)) or DEFAULT_PROFILE

    def set_default_profile(self, profile_id: str) -> None:
        self._set("default_profile", profile_id)

    def get_model_path(self) -> str:
        data = self._read_all()
        return str(data.get("model_path", ""))

    def set_model_path(self, path: str) -> None:
        self._set("model_path", path)

    def get_profiles_path(self) -> str:
        data = self._read_all()
        return str(data.get("profiles_path", ""))

    def set_profiles_path(self, path: str) -> None:
        self._set("profiles_path", path)

    def get_injector_backend(self) -> str:
        data = self._read_all()
        return str(data.get("injector_backend", ""))

    def get_log_level(self) -> str:
        data = self._read_all()
        return str(data.get("log_level", DEFAULT_LOG_LEVEL)).upper() or DEFAULT_LOG_LEVEL

    def set_log_level(self, level: str) -> None:
        self._set("log_level", level.upper())

    def _set(self, key: str, value: object) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
