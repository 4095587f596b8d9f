"""
Device and fleet health derived from status rows and recent telemetry.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from alerts import rules
from core.timeutil import as_utc

UPTIME_WINDOW_HOURS = 24


def is_online(last_reading_at: datetime | None, *, now: datetime, offline_after: timedelta) -> bool:
    last = as_utc(last_reading_at)
    if last is None:
        return False
    return (now - last) < offline_after


def health_status(
    *,
    online: bool,
    battery_level: float | None,
    signal_strength: float | None,
    error_count: int,
    thresholds: rules.Thresholds,
) -> str:
    if not online:
        return rules.HEALTH_CRITICAL
    if battery_level is not None and battery_level < thresholds.battery_warning:
        return rules.HEALTH_WARNING
    if signal_strength is not None and signal_strength < thresholds.signal_warning:
        return rules.HEALTH_WARNING
    if error_count > 0:
        return rules.HEALTH_WARNING
    return rules.HEALTH_GOOD


def device_health(
    row: dict[str, Any],
    *,
    now: datetime,
    offline_after: timedelta,
    thresholds: rules.Thresholds,
) -> dict[str, Any]:
    """
    `row` is a device joined with its status and recent-telemetry counters
    (see `dashboard.repository.list_device_health_inputs`).
    """
    online = is_online(row.get("last_reading_at"), now=now, offline_after=offline_after)
    error_codes = row.get("error_codes")
    error_count = len(error_codes) if isinstance(error_codes, list) else 0
    battery_level = rules.to_float(row.get("battery_level"))
    signal_strength = rules.to_float(row.get("signal_strength"))
    active_hours = int(row.get("active_hours_last_day") or 0)

    return {
        "id": row["id"],
        "device_code": row["device_code"],
        "location": row.get("location"),
        "status": row.get("status"),
        "firmware_version": row.get("firmware_version"),
        "last_seen": row.get("last_seen"),
        "installation_date": row.get("installation_date"),
        "health": {
            "status": health_status(
                online=online,
                battery_level=battery_level,
                signal_strength=signal_strength,
                error_count=error_count,
                thresholds=thresholds,
            ),
            "is_online": online,
            "uptime_percentage": round(min(active_hours, UPTIME_WINDOW_HOURS) / UPTIME_WINDOW_HOURS * 100, 2),
            "battery_level": battery_level,
            "signal_strength": None if signal_strength is None else int(signal_strength),
            "error_count": error_count,
            "data_points_last_hour": int(row.get("data_points_last_hour") or 0),
            "last_transmission": row.get("last_transmission"),
            "maintenance_count": int(row.get("maintenance_count") or 0),
        },
    }


def system_health(devices: list[dict[str, Any]]) -> dict[str, Any]:
    total = len(devices)
    active = sum(1 for d in devices if d["health"]["is_online"])
    warning = sum(1 for d in devices if d["health"]["status"] == rules.HEALTH_WARNING)
    critical = sum(1 for d in devices if d["health"]["status"] == rules.HEALTH_CRITICAL)
    return {
        "total_devices": total,
        "active_devices": active,
        "warning_devices": warning,
        "critical_devices": critical,
        "healthy_devices": total - warning - critical,
        "overall_health": round(active / total * 100, 2) if total else 0,
    }
