"""
Alert views and side effects built on `alerts.rules`.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any
from uuid import UUID

from core import notifier, settings, timeutil

from . import repository, rules

logger = logging.getLogger(__name__)

SUMMARY_RECENT_LIMIT = 10


def alerts_for_row(row: dict[str, Any], *, thresholds: rules.Thresholds | None = None) -> list[rules.Alert]:
    """
    Evaluate one stored telemetry row, stamping alerts with the reading time.
    """
    return rules.evaluate_telemetry(
        row["device_id"],
        rules.Reading.from_row(row),
        timestamp=row.get("timestamp"),
        thresholds=thresholds,
    )


async def check_recent_alerts(*, user_id: int, window_minutes: int | None = None) -> list[rules.Alert]:
    """
    Alerts for every reading of the user's devices inside the recent window,
    newest reading first.
    """
    minutes = window_minutes if window_minutes is not None else settings.alert_recent_window_minutes()
    since = timeutil.utc_now() - timedelta(minutes=max(minutes, 0))
    rows = await repository.fetch_readings_since(user_id=user_id, since=since)

    thresholds = rules.thresholds_from_env()
    found: list[rules.Alert] = []
    for row in rows:
        found.extend(alerts_for_row(row, thresholds=thresholds))
    return found


async def alert_summary(*, user_id: int, window_minutes: int | None = None) -> dict[str, Any]:
    recent = await check_recent_alerts(user_id=user_id, window_minutes=window_minutes)
    return {
        "total_critical": sum(1 for a in recent if a.severity == rules.SEVERITY_CRITICAL),
        "total_warning": sum(1 for a in recent if a.severity == rules.SEVERITY_WARNING),
        "active_devices_with_alerts": len({a.device_id for a in recent}),
        "recent_alerts": [a.to_dict() for a in recent[:SUMMARY_RECENT_LIMIT]],
    }


async def weather_alerts(
    *,
    user_id: int,
    device_code: str | None = None,
    severity: rules.Severity | None = None,
    limit: int = 50,
) -> list[dict[str, Any]]:
    """
    Latest readings that triggered at least one alert (after the optional
    severity filter), each with its alert list.
    """
    rows = await repository.fetch_latest_readings(user_id=user_id, device_code=device_code, limit=limit)

    thresholds = rules.thresholds_from_env()
    records: list[dict[str, Any]] = []
    for row in rows:
        matched = rules.filter_by_severity(alerts_for_row(row, thresholds=thresholds), severity)
        if not matched:
            continue
        records.append(
            {
                "id": row["id"],
                "device_id": row["device_id"],
                "device_code": row["device_code"],
                "timestamp": row["timestamp"],
                "alerts": [a.to_dict() for a in matched],
            }
        )
    return records


async def update_device_status_with_alerts(
    device_id: UUID,
    alerts: list[rules.Alert],
    *,
    battery_level: float | None = None,
    signal_strength: float | None = None,
) -> str:
    """
    Persist the latest transmission and its alert codes; returns the health
    level implied by the alerts.
    """
    await repository.upsert_device_status(
        device_id,
        error_codes=[a.type for a in alerts],
        battery_level=battery_level,
        signal_strength=None if signal_strength is None else int(signal_strength),
    )
    return rules.health_from_alerts(alerts)


async def notify_critical_alerts(device_code: str, alerts: list[rules.Alert]) -> bool:
    """
    BackgroundTasks entrypoint.

    Sends critical alerts to the configured webhook. Never raises to the
    request path; delivery failures are logged.
    """
    critical = [a for a in alerts if a.severity == rules.SEVERITY_CRITICAL]
    if not critical or not notifier.webhook_enabled():
        return False

    try:
        status_code = await notifier.post_alerts(
            url=settings.alert_webhook_url(),
            device_code=device_code,
            alerts=[a.to_dict() for a in critical],
        )
    except notifier.NotifierError:
        logger.exception("alert_webhook_failed device_code=%s alerts=%s", device_code, len(critical))
        return False

    logger.info(
        "alert_webhook_delivered device_code=%s alerts=%s status=%s",
        device_code,
        len(critical),
        status_code,
    )
    return True
