"""
Telemetry ingestion and listing.

Ingestion is a straight line: authorize the device, store the reading,
evaluate alert thresholds, refresh the device status row, bump last_seen.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from fastapi import HTTPException, status

from alerts import rules
from alerts import service as alert_service
from core import timeutil
from devices import repository as device_repository

from . import repository, schemas

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 1000
SIGNAL_RANGE_DBM = (-200, 0)


@dataclass(frozen=True)
class IngestResult:
    telemetry_id: int
    device_code: str
    alerts: list[rules.Alert] = field(default_factory=list)
    health: str = rules.HEALTH_GOOD

    def to_response(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": True, "telemetry_id": self.telemetry_id}
        # Devices only get an alerts key when something fired.
        if self.alerts:
            body["alerts"] = [a.to_dict() for a in self.alerts]
        return body


def _within(value: float, low: float, high: float) -> bool:
    return math.isfinite(value) and low <= value <= high


def reading_from_payload(payload: schemas.TelemetryIngestRequest) -> rules.Reading:
    """
    Battery and signal travel in `metadata` as `battery` / `signal`.
    """
    meta = payload.metadata or {}
    return rules.Reading(
        wind_speed=payload.data.wind_speed,
        temperature=payload.data.temperature,
        humidity=payload.data.humidity,
        battery_level=rules.to_float(meta.get("battery")),
        signal_strength=rules.to_float(meta.get("signal")),
    )


async def ingest(payload: schemas.TelemetryIngestRequest, *, device: dict[str, Any]) -> IngestResult:
    device_code = (payload.device_id or "").strip()
    if not device_code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Device ID is required.")

    target = await device_repository.get_device_by_code(device_code)
    if target is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Device not found.")
    if target["id"] != device["id"]:
        logger.warning(
            "telemetry_device_mismatch key_device=%s payload_device=%s",
            device.get("device_code"),
            device_code,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="API key does not belong to this device.",
        )

    reading = reading_from_payload(payload)
    if reading.battery_level is not None and not _within(reading.battery_level, 0, 100):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="metadata.battery must be a percentage between 0 and 100.",
        )
    if reading.signal_strength is not None and not _within(reading.signal_strength, *SIGNAL_RANGE_DBM):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="metadata.signal must be between -200 and 0 dBm.",
        )
    signal = None if reading.signal_strength is None else int(round(reading.signal_strength))
    timestamp = timeutil.as_utc(payload.timestamp)

    telemetry_id = await repository.insert_reading(
        device_id=target["id"],
        timestamp=timestamp,
        wind_speed=reading.wind_speed,
        wind_direction=payload.data.wind_direction,
        temperature=reading.temperature,
        humidity=reading.humidity,
        battery_level=reading.battery_level,
        signal_strength=signal,
        metadata=payload.metadata,
    )

    alerts = rules.evaluate_telemetry(target["id"], reading, timestamp=timeutil.utc_now())
    health = await alert_service.update_device_status_with_alerts(
        target["id"],
        alerts,
        battery_level=reading.battery_level,
        signal_strength=signal,
    )
    await device_repository.touch_last_seen(target["id"])

    logger.info(
        "telemetry_ingested device_code=%s telemetry_id=%s alerts=%s health=%s",
        device_code,
        telemetry_id,
        len(alerts),
        health,
    )
    return IngestResult(telemetry_id=telemetry_id, device_code=device_code, alerts=alerts, health=health)


async def list_telemetry(
    *,
    user_id: int,
    device_code: str | None = None,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    limit: int = 50,
) -> list[dict[str, Any]]:
    from_date = timeutil.as_utc(from_date)
    to_date = timeutil.as_utc(to_date)
    if from_date is not None and to_date is not None and from_date > to_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="from_date must not be after to_date.",
        )

    return await repository.list_readings(
        user_id=user_id,
        device_code=(device_code or "").strip() or None,
        from_date=from_date,
        to_date=to_date,
        limit=max(1, min(limit, MAX_LIST_LIMIT)),
    )
