"""
Telemetry ingestion payloads.

Devices post:

    {
      "device_id": "WS-001",
      "timestamp": "2026-10-19T12:00:00Z",
      "location": {"lat": 55.6, "lng": 12.5},
      "data": {"wind_speed": 12.4, "wind_direction": 270, "temperature": 18.2, "humidity": 64},
      "metadata": {"battery": 87.5, "signal": -71, "firmware": "1.4.2"}
    }

`device_id` is the device code, not the database UUID.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class SensorData(BaseModel):
    wind_speed: float | None = Field(default=None, ge=0.0, le=9999.99)
    wind_direction: int | None = Field(default=None, ge=0, le=360)
    temperature: float | None = Field(default=None, ge=-999.99, le=999.99)
    humidity: float | None = Field(default=None, ge=0.0, le=100.0)


class TelemetryIngestRequest(BaseModel):
    device_id: str = Field(..., max_length=100)
    timestamp: datetime | None = None
    location: dict[str, Any] | str | None = None
    data: SensorData = Field(default_factory=SensorData)
    metadata: dict[str, Any] | None = None
