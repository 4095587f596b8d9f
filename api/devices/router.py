"""
Device registry endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from auth import dependencies as auth_dependencies

from . import schemas, service

router = APIRouter(prefix="/devices")


@router.get("")
async def list_devices(
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    devices = await service.list_devices(user_id=int(current_user["id"]))
    return {"success": True, "devices": devices}


@router.post("/register", status_code=201)
async def register_device(
    request: schemas.RegisterDeviceRequest,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    result = await service.register_device(request, user_id=int(current_user["id"]))
    return {"success": True, **result}


@router.get("/{device_ref}/status")
async def get_device_status(
    device_ref: str,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    """
    `device_ref` is either the device UUID or its device code.
    """
    result = await service.device_status(device_ref, user_id=int(current_user["id"]))
    return {"success": True, **result}


@router.post("/{device_ref}/api-key")
async def rotate_device_api_key(
    device_ref: str,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    result = await service.rotate_api_key(device_ref, user_id=int(current_user["id"]))
    return {"success": True, **result}
