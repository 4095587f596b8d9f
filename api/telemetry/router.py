"""
Telemetry endpoints: device ingestion and dashboard listing.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from alerts import service as alert_service
from auth import dependencies as auth_dependencies
from devices import dependencies as device_dependencies

from . import schemas, service

router = APIRouter(prefix="/telemetry")


@router.post("/data")
async def receive_telemetry(
    payload: schemas.TelemetryIngestRequest,
    background_tasks: BackgroundTasks,
    device: dict = Depends(device_dependencies.get_current_device),
) -> dict:
    """
    Device ingestion endpoint (Authorization: Bearer <device api key>).
    """
    result = await service.ingest(payload, device=device)

    # Webhook delivery runs after the response is sent.
    if result.alerts:
        background_tasks.add_task(alert_service.notify_critical_alerts, result.device_code, result.alerts)

    return result.to_response()


@router.get("")
async def list_telemetry(
    device_id: str | None = Query(default=None, max_length=100, description="Device code filter."),
    limit: int = Query(default=50, ge=1),
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    rows = await service.list_telemetry(
        user_id=int(current_user["id"]),
        device_code=device_id,
        from_date=from_date,
        to_date=to_date,
        limit=limit,
    )
    return {"success": True, "telemetry": rows}
