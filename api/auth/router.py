"""
Dashboard user auth endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from . import dependencies, schemas, service

router = APIRouter(prefix="/auth")


def _client_meta(request: Request) -> dict:
    return {
        "user_agent": request.headers.get("user-agent"),
        "ip_address": request.client.host if request.client else None,
    }


@router.post("/register", status_code=201)
async def register(payload: schemas.RegisterRequest, request: Request) -> schemas.AuthResponse:
    return await service.register(payload, **_client_meta(request))


@router.post("/login")
async def login(payload: schemas.LoginRequest, request: Request) -> schemas.AuthResponse:
    return await service.login(payload, **_client_meta(request))


@router.post("/refresh")
async def refresh(payload: schemas.RefreshRequest, request: Request) -> schemas.TokenPairResponse:
    return await service.refresh_tokens(payload, **_client_meta(request))


@router.post("/logout")
async def logout(
    payload: schemas.LogoutRequest,
    current_user: dict | None = Depends(dependencies.get_optional_user),
) -> schemas.LogoutResponse:
    current_user_id = int(current_user["id"]) if current_user is not None else None
    return await service.logout(payload, current_user_id=current_user_id)


@router.get("/me")
async def me(current_user: dict = Depends(dependencies.get_current_user)) -> schemas.UserResponse:
    return service.me(current_user)
