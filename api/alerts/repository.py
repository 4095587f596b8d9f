"""
Alert-related queries and device status upkeep.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from core import db

READING_COLUMNS = """
    t.id, t.device_id, d.device_code, t."timestamp",
    t.wind_speed, t.wind_direction, t.temperature, t.humidity,
    t.battery_level, t.signal_strength
"""


async def fetch_readings_since(*, user_id: int, since: datetime) -> list[dict[str, Any]]:
    """
    Readings of the user's devices at or after `since`, newest first.
    """
    return await db.fetch_all(
        f"""
        SELECT {READING_COLUMNS}
        FROM telemetry_data t
        JOIN devices d ON d.id = t.device_id
        WHERE d.user_id = $1
          AND t."timestamp" >= $2
        ORDER BY t."timestamp" DESC, t.id DESC
        """,
        user_id,
        since,
    )


async def fetch_latest_readings(
    *,
    user_id: int,
    device_code: str | None = None,
    limit: int = 50,
) -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        SELECT {READING_COLUMNS}
        FROM telemetry_data t
        JOIN devices d ON d.id = t.device_id
        WHERE d.user_id = $1
          AND ($2::text IS NULL OR d.device_code = $2)
        ORDER BY t."timestamp" DESC, t.id DESC
        LIMIT $3
        """,
        user_id,
        device_code,
        limit,
    )


async def upsert_device_status(
    device_id: UUID,
    *,
    error_codes: list[str],
    battery_level: float | None = None,
    signal_strength: int | None = None,
) -> None:
    """
    Record a transmission: mark online, replace error codes, and keep the
    previous battery/signal values when the reading did not carry them.
    """
    await db.execute(
        """
        INSERT INTO device_status AS ds (
            device_id, online_status, last_transmission, error_codes,
            battery_level, signal_strength
        )
        VALUES ($1, true, now(), $2::jsonb, $3, $4)
        ON CONFLICT (device_id) DO UPDATE
        SET online_status = true,
            last_transmission = now(),
            error_codes = EXCLUDED.error_codes,
            battery_level = COALESCE(EXCLUDED.battery_level, ds.battery_level),
            signal_strength = COALESCE(EXCLUDED.signal_strength, ds.signal_strength),
            last_synced_at = now(),
            updated_at = now()
        """,
        device_id,
        error_codes,
        battery_level,
        None if signal_strength is None else int(signal_strength),
    )
