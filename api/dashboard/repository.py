"""
Dashboard read queries.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from core import db


async def fetch_readings_for_aggregation(
    *,
    user_id: int,
    device_code: str | None = None,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
) -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT d.id AS device_id, d.device_code, t."timestamp",
               t.wind_speed, t.wind_direction, t.temperature, t.humidity
        FROM telemetry_data t
        JOIN devices d ON d.id = t.device_id
        WHERE d.user_id = $1
          AND ($2::text IS NULL OR d.device_code = $2)
          AND ($3::timestamptz IS NULL OR t."timestamp" >= $3)
          AND ($4::timestamptz IS NULL OR t."timestamp" <= $4)
        ORDER BY t."timestamp" DESC
        """,
        user_id,
        device_code,
        from_date,
        to_date,
    )


async def list_device_health_inputs(
    *,
    user_id: int,
    now: datetime,
    device_code: str | None = None,
) -> list[dict[str, Any]]:
    """
    One row per device: registry fields, status row fields, and counters over
    the 24 hours before `now`.
    """
    return await db.fetch_all(
        """
        SELECT d.id, d.device_code, d.location, d.status, d.firmware_version,
               d.last_seen, d.installation_date,
               ds.last_transmission, ds.error_codes, ds.maintenance_count,
               ds.battery_level, ds.signal_strength,
               recent.last_reading_at,
               COALESCE(recent.data_points_last_hour, 0) AS data_points_last_hour,
               COALESCE(recent.active_hours_last_day, 0) AS active_hours_last_day
        FROM devices d
        LEFT JOIN device_status ds ON ds.device_id = d.id
        LEFT JOIN LATERAL (
            SELECT max(t."timestamp") AS last_reading_at,
                   count(*) FILTER (WHERE t."timestamp" >= $3::timestamptz - interval '1 hour') AS data_points_last_hour,
                   count(DISTINCT date_trunc('hour', t."timestamp")) AS active_hours_last_day
            FROM telemetry_data t
            WHERE t.device_id = d.id
              AND t."timestamp" >= $3::timestamptz - interval '24 hours'
              AND t."timestamp" <= $3::timestamptz
        ) recent ON true
        WHERE d.user_id = $1
          AND ($2::text IS NULL OR d.device_code = $2)
        ORDER BY d.created_at, d.id
        """,
        user_id,
        device_code,
        now,
    )
