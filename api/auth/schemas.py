"""
Dashboard user auth schemas.

Devices never use these; they authenticate with an API key (see
`devices.dependencies`).
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

PASSWORD_MIN_LENGTH = 8


def _clean_email(value: str) -> str:
    value = value.strip().lower()
    local, sep, domain = value.partition("@")
    if not sep or not local or not domain:
        raise ValueError("Email must look like name@domain.")
    return value


class Credentials(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _clean_email(value)


class RegisterRequest(Credentials):
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=128)


class LoginRequest(Credentials):
    pass


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=20)


class LogoutRequest(BaseModel):
    # Omitted: an authenticated user signs out of every session.
    refresh_token: str | None = Field(default=None, min_length=20)


class LogoutResponse(BaseModel):
    ok: bool = True
    revoked_sessions: int


class UserResponse(BaseModel):
    id: int
    email: str
    is_active: bool
    created_at: datetime


class TokenPairResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthResponse(BaseModel):
    user: UserResponse
    tokens: TokenPairResponse
