"""
Dashboard API endpoints.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from auth import dependencies as auth_dependencies

from . import service

router = APIRouter(prefix="/dashboard")


@router.get("/aggregated")
async def get_aggregated(
    device_id: str | None = Query(default=None, max_length=100, description="Device code filter."),
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    aggregations = await service.aggregated(
        user_id=int(current_user["id"]),
        device_code=device_id,
        from_date=from_date,
        to_date=to_date,
    )
    return {"success": True, "aggregations": aggregations}


@router.get("/health")
async def get_health(
    device_id: str | None = Query(default=None, max_length=100, description="Device code filter."),
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    result = await service.device_health(user_id=int(current_user["id"]), device_code=device_id)
    return {"success": True, **result}
