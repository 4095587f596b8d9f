"""
Dashboard user authentication.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from fastapi import HTTPException, status

from core import timeutil

from . import repository, schemas, security

logger = logging.getLogger(__name__)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _to_user_response(user_row: dict) -> schemas.UserResponse:
    return schemas.UserResponse(
        id=int(user_row["id"]),
        email=str(user_row["email"]),
        is_active=bool(user_row["is_active"]),
        created_at=user_row["created_at"],
    )


async def _issue_token_pair(
    *,
    user_row: dict,
    user_agent: str | None = None,
    ip_address: str | None = None,
    replaces_token_id: int | None = None,
) -> schemas.TokenPairResponse:
    user_id = int(user_row["id"])

    access_token = security.build_access_token(user_id=user_id, email=str(user_row["email"]))
    raw_refresh_token = security.build_refresh_token()

    await repository.insert_refresh_token(
        user_id=user_id,
        token_hash=security.hash_refresh_token(raw_refresh_token),
        expires_at=timeutil.utc_now() + timedelta(days=security.refresh_token_expire_days()),
        user_agent=user_agent,
        ip_address=ip_address,
        replaces_token_id=replaces_token_id,
    )

    return schemas.TokenPairResponse(
        access_token=access_token,
        refresh_token=raw_refresh_token,
    )


async def register(
    payload: schemas.RegisterRequest,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> schemas.AuthResponse:
    existing = await repository.get_user_by_email(payload.email)
    if existing is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email is already registered.",
        )

    password_hash = security.hash_password(payload.password)
    user_row = await repository.create_user(email=payload.email, password_hash=password_hash)
    logger.info("user_registered user_id=%s", user_row["id"])

    tokens = await _issue_token_pair(user_row=user_row, user_agent=user_agent, ip_address=ip_address)
    return schemas.AuthResponse(user=_to_user_response(user_row), tokens=tokens)


async def login(
    payload: schemas.LoginRequest,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> schemas.AuthResponse:
    user_row = await repository.get_user_by_email(payload.email)
    if user_row is None:
        raise _unauthorized("Invalid email or password.")

    if not bool(user_row.get("is_active", False)):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is inactive.",
        )

    if not security.verify_password(payload.password, str(user_row.get("password_hash") or "")):
        logger.info("login_failed user_id=%s", user_row["id"])
        raise _unauthorized("Invalid email or password.")

    tokens = await _issue_token_pair(user_row=user_row, user_agent=user_agent, ip_address=ip_address)
    return schemas.AuthResponse(user=_to_user_response(user_row), tokens=tokens)


async def refresh_tokens(
    payload: schemas.RefreshRequest,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> schemas.TokenPairResponse:
    incoming_refresh = (payload.refresh_token or "").strip()
    if not incoming_refresh:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="refresh_token is required.",
        )

    old_token_row = await repository.get_refresh_token_by_hash(security.hash_refresh_token(incoming_refresh))
    if old_token_row is None:
        raise _unauthorized("Invalid refresh token.")

    old_token_id = int(old_token_row["id"])
    if old_token_row.get("revoked_at") is not None:
        raise _unauthorized("Refresh token is revoked.")

    expires_at = old_token_row.get("expires_at")
    if not isinstance(expires_at, datetime) or expires_at <= timeutil.utc_now():
        await repository.revoke_refresh_token_by_id(old_token_id)
        raise _unauthorized("Refresh token is expired.")

    user_row = await repository.get_user_by_id(int(old_token_row["user_id"]))
    if user_row is None or not bool(user_row.get("is_active", False)):
        await repository.revoke_refresh_token_by_id(old_token_id)
        raise _unauthorized("Invalid refresh token owner.")

    return await _issue_token_pair(
        user_row=user_row,
        user_agent=user_agent,
        ip_address=ip_address,
        replaces_token_id=old_token_id,
    )


async def logout(
    payload: schemas.LogoutRequest,
    *,
    current_user_id: int | None = None,
) -> schemas.LogoutResponse:
    refresh_token = (payload.refresh_token or "").strip()
    if refresh_token:
        revoked = await repository.revoke_refresh_token_by_hash(security.hash_refresh_token(refresh_token))
        return schemas.LogoutResponse(revoked_sessions=1 if revoked else 0)

    # No token given: an authenticated user signs out of every session.
    if current_user_id is not None:
        revoked_count = await repository.revoke_all_refresh_tokens_for_user(current_user_id)
        logger.info("logout_all user_id=%s revoked=%s", current_user_id, revoked_count)
        return schemas.LogoutResponse(revoked_sessions=revoked_count)

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Provide refresh_token or authenticated user.",
    )


async def get_user_from_access_token(access_token: str) -> dict:
    try:
        payload = security.decode_access_token(access_token)
    except security.AuthSecurityError as exc:
        raise _unauthorized(str(exc)) from exc

    subject = str(payload.get("sub") or "").strip()
    if not subject.isdigit():
        raise _unauthorized("Invalid access token subject.")

    user_row = await repository.get_user_by_id(int(subject))
    if user_row is None:
        raise _unauthorized("User not found.")
    if not bool(user_row.get("is_active", False)):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is inactive.",
        )
    return user_row


def me(user_row: dict) -> schemas.UserResponse:
    return _to_user_response(user_row)
