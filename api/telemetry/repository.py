"""
Telemetry persistence (raw SQL).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from core import db


async def insert_reading(
    *,
    device_id: UUID,
    timestamp: datetime | None,
    wind_speed: float | None,
    wind_direction: int | None,
    temperature: float | None,
    humidity: float | None,
    battery_level: float | None,
    signal_strength: int | None,
    metadata: dict[str, Any] | None,
) -> int:
    telemetry_id = await db.fetch_value(
        """
        INSERT INTO telemetry_data (
            device_id, "timestamp", wind_speed, wind_direction, temperature,
            humidity, battery_level, signal_strength, metadata
        )
        VALUES ($1, COALESCE($2, now()), $3, $4, $5, $6, $7, $8, $9::jsonb)
        RETURNING id
        """,
        device_id,
        timestamp,
        wind_speed,
        wind_direction,
        temperature,
        humidity,
        battery_level,
        signal_strength,
        metadata,
    )
    if telemetry_id is None:
        raise RuntimeError("Failed to insert telemetry reading.")
    return int(telemetry_id)


async def list_readings(
    *,
    user_id: int,
    device_code: str | None = None,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    limit: int = 50,
) -> list[dict[str, Any]]:
    """
    The user's readings, newest first. Date bounds are inclusive.
    """
    return await db.fetch_all(
        """
        SELECT t.id, t.device_id, d.device_code, t."timestamp",
               t.wind_speed, t.wind_direction, t.temperature, t.humidity,
               t.battery_level, t.signal_strength, t.metadata
        FROM telemetry_data t
        JOIN devices d ON d.id = t.device_id
        WHERE d.user_id = $1
          AND ($2::text IS NULL OR d.device_code = $2)
          AND ($3::timestamptz IS NULL OR t."timestamp" >= $3)
          AND ($4::timestamptz IS NULL OR t."timestamp" <= $4)
        ORDER BY t."timestamp" DESC, t.id DESC
        LIMIT $5
        """,
        user_id,
        device_code,
        from_date,
        to_date,
        limit,
    )
