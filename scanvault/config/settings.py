"""Settings resolved from the environment with sane defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass

from . import constants


def _get_env_str(env_name: str, default: str) -> str:
    raw = os.getenv(env_name)
    if raw is None:
        return default
    return raw


def _parse_env_int(env_name: str, default: int) -> int:
    raw = os.getenv(env_name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _parse_env_float(env_name: str, default: float) -> float:
    raw = os.getenv(env_name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _parse_service_ports() -> dict[str, int]:
    raw = os.getenv("SCANVAULT_SERVICE_PORTS")
    ports = dict(constants.DEFAULT_SERVICE_PORTS)
    if not raw:
        return ports
    for entry in raw.split(","):
        pair = entry.strip().split("=")
        if len(pair) != 2:
            continue
        name, value = pair
        try:
            ports[name.strip()] = int(value.strip())
        except ValueError:
            continue
    return ports


@dataclass(frozen=True)
class Settings:
    data_dir: str
    history_key: str
    debounce_window_ms: int
    probe_url: str
    probe_timeout: float
    monitor_interval: float
    api_host: str
    service_ports: dict[str, int]
    user_agent: str

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            data_dir=_get_env_str("SCANVAULT_DATA_DIR", constants.DEFAULT_DATA_DIR),
            history_key=_get_env_str(
                "SCANVAULT_HISTORY_KEY", constants.DEFAULT_HISTORY_KEY
            ),
            debounce_window_ms=_parse_env_int(
                "SCANVAULT_DEBOUNCE_WINDOW_MS",
                constants.DEFAULT_DEBOUNCE_WINDOW_MS,
            ),
            probe_url=_get_env_str("SCANVAULT_PROBE_URL", constants.DEFAULT_PROBE_URL),
            probe_timeout=_parse_env_float(
                "SCANVAULT_PROBE_TIMEOUT", constants.DEFAULT_PROBE_TIMEOUT
            ),
            monitor_interval=_parse_env_float(
                "SCANVAULT_MONITOR_INTERVAL", constants.DEFAULT_MONITOR_INTERVAL
            ),
            api_host=_get_env_str("SCANVAULT_API_HOST", constants.DEFAULT_API_HOST),
            service_ports=_parse_service_ports(),
            user_agent=_get_env_str("SCANVAULT_USER_AGENT", constants.DEFAULT_USER_AGENT),
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


__all__ = ["Settings", "get_settings"]
