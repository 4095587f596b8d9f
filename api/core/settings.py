"""
Environment-driven settings.

Values are read lazily on every call so tests (and long-running processes
reloaded with a new environment) always see the current value.
"""

from __future__ import annotations

import os


def env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip() or default


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def env_list(name: str, default: list[str]) -> list[str]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def cors_origins() -> list[str]:
    return env_list(
        "CORS_ORIGINS",
        [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
    )


def log_level() -> str:
    return env_str("LOG_LEVEL", "INFO").upper()


def device_offline_after_minutes() -> int:
    return env_int("DEVICE_OFFLINE_AFTER_MIN", 30)


def alert_recent_window_minutes() -> int:
    return env_int("ALERT_RECENT_WINDOW_MIN", 5)


def alert_webhook_url() -> str:
    return env_str("ALERT_WEBHOOK_URL", "")
