"""
Auth security helpers.

Two kinds of credentials exist:
- dashboard users: bcrypt password hash, short-lived JWT access token and an
  opaque refresh token stored as a SHA-256 hash
- devices: an opaque API key, also stored only as a SHA-256 hash
"""

from __future__ import annotations

import hashlib
import secrets
import time
from typing import Any

import bcrypt
import jwt

from core import settings

DEVICE_API_KEY_PREFIX = "wsk_"


class AuthSecurityError(RuntimeError):
    pass


def jwt_secret() -> str:
    # Local default keeps development simple.
    # In production, set JWT_SECRET in environment.
    return settings.env_str("JWT_SECRET", "dev-change-this-secret")


def jwt_algorithm() -> str:
    return settings.env_str("JWT_ALG", "HS256")


def access_token_expire_minutes() -> int:
    return settings.env_int("ACCESS_TOKEN_EXPIRE_MIN", 15)


def refresh_token_expire_days() -> int:
    return settings.env_int("REFRESH_TOKEN_EXPIRE_DAYS", 30)


def now_epoch_s() -> int:
    return int(time.time())


def hash_password(plain_password: str) -> str:
    password = (plain_password or "").encode("utf-8")
    if not password:
        raise AuthSecurityError("Password is empty.")
    return bcrypt.hashpw(password, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    password = (plain_password or "").encode("utf-8")
    hashed = (password_hash or "").encode("utf-8")
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        return False


def build_access_token(*, user_id: int, email: str) -> str:
    issued_at = now_epoch_s()
    expires_at = issued_at + (access_token_expire_minutes() * 60)

    payload = {
        "sub": str(user_id),
        "email": email,
        "type": "access",
        "iat": issued_at,
        "exp": expires_at,
    }
    return jwt.encode(payload, jwt_secret(), algorithm=jwt_algorithm())


def decode_access_token(token: str) -> dict[str, Any]:
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Access token is empty.")

    try:
        payload = jwt.decode(raw, jwt_secret(), algorithms=[jwt_algorithm()])
    except jwt.InvalidTokenError as exc:
        raise AuthSecurityError("Invalid access token.") from exc

    token_type = str(payload.get("type") or "").strip().lower()
    if token_type != "access":
        raise AuthSecurityError("Token is not an access token.")

    return payload


def build_refresh_token() -> str:
    # URL-safe random string for client storage/transmission.
    return secrets.token_urlsafe(48)


def build_device_api_key() -> str:
    return DEVICE_API_KEY_PREFIX + secrets.token_urlsafe(32)


def hash_secret(raw_secret: str) -> str:
    """
    SHA-256 hex digest used for refresh tokens and device API keys.

    Both are high-entropy random strings, so a fast unsalted hash is enough
    for lookup-by-hash.
    """
    value = (raw_secret or "").strip().encode("utf-8")
    if not value:
        raise AuthSecurityError("Secret is empty.")
    return hashlib.sha256(value).hexdigest()


def hash_refresh_token(raw_refresh_token: str) -> str:
    return hash_secret(raw_refresh_token)


def hash_device_api_key(raw_api_key: str) -> str:
    return hash_secret(raw_api_key)
