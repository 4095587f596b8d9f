"""
Device registry persistence (raw SQL).

`api_key_hash` is only ever selected by `get_device_by_api_key_hash`; every
other query returns the public column set.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

import asyncpg

from core import db

DEVICE_COLUMNS = """
    d.id, d.device_code, d.location, d.installation_date, d.status,
    d.firmware_version, d.last_seen, d.user_id, d.created_at, d.updated_at
"""

STATUS_COLUMNS = """
    device_id, online_status, last_transmission, error_codes, maintenance_count,
    battery_level, signal_strength, last_synced_at, created_at, updated_at
"""

INITIAL_BATTERY_LEVEL = 100
INITIAL_SIGNAL_STRENGTH = -50


class DeviceExistsError(RuntimeError):
    """Raised when an insert hits the unique device_code (or api_key_hash) index."""


async def list_devices_with_status(*, user_id: int) -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        SELECT {DEVICE_COLUMNS},
               CASE WHEN ds.device_id IS NULL THEN NULL ELSE to_jsonb(ds) END AS status_info
        FROM devices d
        LEFT JOIN device_status ds ON ds.device_id = d.id
        WHERE d.user_id = $1
        ORDER BY d.created_at, d.id
        """,
        user_id,
    )


async def get_device_by_id(device_id: UUID) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {DEVICE_COLUMNS}
        FROM devices d
        WHERE d.id = $1
        """,
        device_id,
    )


async def get_device_by_code(device_code: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {DEVICE_COLUMNS}
        FROM devices d
        WHERE d.device_code = $1
        """,
        device_code,
    )


async def get_device_by_api_key_hash(api_key_hash: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {DEVICE_COLUMNS}
        FROM devices d
        WHERE d.api_key_hash = $1
        """,
        api_key_hash,
    )


async def get_device_status(device_id: UUID) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {STATUS_COLUMNS}
        FROM device_status
        WHERE device_id = $1
        """,
        device_id,
    )


async def create_device(
    *,
    user_id: int,
    device_code: str,
    location: Any,
    firmware_version: str | None,
    api_key_hash: str,
) -> dict[str, Any]:
    """
    Insert a device and its initial status row in a single transaction.

    Raises DeviceExistsError when another registration claimed the code first.
    """
    async with db.pool().acquire() as conn:
        async with conn.transaction():
            try:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO devices AS d (
                        device_code, location, firmware_version, installation_date,
                        status, user_id, last_seen, api_key_hash
                    )
                    VALUES ($1, $2::jsonb, $3, now(), 'active', $4, now(), $5)
                    RETURNING {DEVICE_COLUMNS}
                    """,
                    device_code,
                    location,
                    firmware_version,
                    user_id,
                    api_key_hash,
                )
            except asyncpg.UniqueViolationError as exc:
                raise DeviceExistsError(f"Device {device_code!r} already exists.") from exc
            if row is None:
                raise RuntimeError("Failed to insert device.")

            await conn.execute(
                """
                INSERT INTO device_status (
                    device_id, online_status, last_transmission, error_codes,
                    battery_level, signal_strength
                )
                VALUES ($1, true, now(), '[]'::jsonb, $2, $3)
                """,
                row["id"],
                INITIAL_BATTERY_LEVEL,
                INITIAL_SIGNAL_STRENGTH,
            )
            return db.record_to_dict(row)


async def set_api_key_hash(device_id: UUID, *, api_key_hash: str) -> None:
    await db.execute(
        """
        UPDATE devices
        SET api_key_hash = $2,
            updated_at = now()
        WHERE id = $1
        """,
        device_id,
        api_key_hash,
    )


async def touch_last_seen(device_id: UUID) -> None:
    await db.execute(
        """
        UPDATE devices
        SET last_seen = now()
        WHERE id = $1
        """,
        device_id,
    )
