"""
Device registry business logic.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import HTTPException, status

from auth import security

from . import repository, schemas

logger = logging.getLogger(__name__)


def _device_exists() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="Device with this code already exists.",
    )


def _parse_uuid(value: str) -> UUID | None:
    try:
        return UUID(value)
    except ValueError:
        return None


async def resolve_device(identifier: str) -> dict[str, Any] | None:
    """
    Look a device up by UUID, falling back to its device code.
    """
    identifier = (identifier or "").strip()
    if not identifier:
        return None
    device_id = _parse_uuid(identifier)
    if device_id is not None:
        return await repository.get_device_by_id(device_id)
    return await repository.get_device_by_code(identifier)


async def get_owned_device(identifier: str, *, user_id: int) -> dict[str, Any]:
    device = await resolve_device(identifier)
    if device is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Device not found.")
    if device.get("user_id") != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unauthorized to access this device.",
        )
    return device


async def list_devices(*, user_id: int) -> list[dict[str, Any]]:
    return await repository.list_devices_with_status(user_id=user_id)


async def register_device(payload: schemas.RegisterDeviceRequest, *, user_id: int) -> dict[str, Any]:
    device_code = (payload.device_code or "").strip()
    if not device_code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Device code is required.")

    existing = await repository.get_device_by_code(device_code)
    if existing is not None:
        raise _device_exists()

    api_key = security.build_device_api_key()
    try:
        device = await repository.create_device(
            user_id=user_id,
            device_code=device_code,
            location=payload.location,
            firmware_version=(payload.firmware_version or "").strip() or None,
            api_key_hash=security.hash_device_api_key(api_key),
        )
    except repository.DeviceExistsError as exc:
        logger.info("device_register_conflict device_code=%s user_id=%s", device_code, user_id)
        raise _device_exists() from exc
    logger.info("device_registered device_id=%s device_code=%s user_id=%s", device["id"], device_code, user_id)

    # The plaintext key is only ever returned here and on rotation.
    return {"device": device, "api_key": api_key}


async def device_status(identifier: str, *, user_id: int) -> dict[str, Any]:
    device = await get_owned_device(identifier, user_id=user_id)
    status_row = await repository.get_device_status(device["id"])
    return {
        "device": {
            "id": device["id"],
            "device_code": device["device_code"],
            "location": device["location"],
            "status": device["status"],
            "firmware_version": device["firmware_version"],
            "last_seen": device["last_seen"],
        },
        "status": status_row,
    }


async def rotate_api_key(identifier: str, *, user_id: int) -> dict[str, Any]:
    device = await get_owned_device(identifier, user_id=user_id)
    api_key = security.build_device_api_key()
    await repository.set_api_key_hash(device["id"], api_key_hash=security.hash_device_api_key(api_key))
    logger.info("device_api_key_rotated device_id=%s user_id=%s", device["id"], user_id)
    return {"device_id": device["id"], "device_code": device["device_code"], "api_key": api_key}


async def authenticate_device(api_key: str) -> dict[str, Any]:
    try:
        key_hash = security.hash_device_api_key(api_key)
    except security.AuthSecurityError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc

    device = await repository.get_device_by_api_key_hash(key_hash)
    if device is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid API key.",
        )
    return device
