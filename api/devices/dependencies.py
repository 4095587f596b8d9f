"""
Device API-key dependency for ingestion routes.
"""

from __future__ import annotations

from fastapi import Header

from auth.dependencies import extract_bearer_token

from . import service


async def get_current_device(authorization: str | None = Header(default=None)) -> dict:
    api_key = extract_bearer_token(authorization, missing_detail="Missing or invalid API key.")
    return await service.authenticate_device(api_key)
