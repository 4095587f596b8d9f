"""
Device registry schemas.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class RegisterDeviceRequest(BaseModel):
    device_code: str = Field(..., max_length=100)
    # Free-form: {"lat": .., "lng": ..} or a site label.
    location: dict[str, Any] | str | None = None
    firmware_version: str | None = Field(default=None, max_length=50)
