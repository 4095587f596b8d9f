"""
Dashboard analytics and health views.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from fastapi import HTTPException, status

from alerts import rules
from core import settings, timeutil

from . import analytics, health, repository


async def aggregated(
    *,
    user_id: int,
    device_code: str | None = None,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
) -> dict[str, Any]:
    from_date, to_date = timeutil.as_utc(from_date), timeutil.as_utc(to_date)
    if from_date is not None and to_date is not None and from_date > to_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="from_date must not be after to_date.",
        )

    device_code = (device_code or "").strip() or None
    rows = await repository.fetch_readings_for_aggregation(
        user_id=user_id,
        device_code=device_code,
        from_date=from_date,
        to_date=to_date,
    )
    return analytics.aggregate_readings(rows, device_filtered=device_code is not None)


async def device_health(
    *,
    user_id: int,
    device_code: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    now = timeutil.as_utc(now) or timeutil.utc_now()
    rows = await repository.list_device_health_inputs(
        user_id=user_id,
        now=now,
        device_code=(device_code or "").strip() or None,
    )

    offline_after = timedelta(minutes=settings.device_offline_after_minutes())
    thresholds = rules.thresholds_from_env()
    devices = [
        health.device_health(row, now=now, offline_after=offline_after, thresholds=thresholds)
        for row in rows
    ]
    return {"system_health": health.system_health(devices), "devices": devices}
