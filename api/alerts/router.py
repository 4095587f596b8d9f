"""
Alert API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from auth import dependencies as auth_dependencies

from . import rules, service

router = APIRouter(prefix="/alerts")

MAX_LIMIT = 1000


@router.get("/weather")
async def get_weather_alerts(
    device_id: str | None = Query(default=None, max_length=100, description="Device code filter."),
    severity: rules.Severity | None = None,
    limit: int = Query(default=50, ge=1),
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    alerts = await service.weather_alerts(
        user_id=int(current_user["id"]),
        device_code=(device_id or "").strip() or None,
        severity=severity,
        limit=min(limit, MAX_LIMIT),
    )
    return {"success": True, "alerts": alerts}


@router.get("/summary")
async def get_alert_summary(
    window_minutes: int | None = Query(default=None, ge=1, le=24 * 60),
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    summary = await service.alert_summary(user_id=int(current_user["id"]), window_minutes=window_minutes)
    return {"success": True, "summary": summary}
