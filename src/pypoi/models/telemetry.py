"""Inbound telemetry message models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TelemetryOrigin(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    device: str = ""


class WaterTemperatureTelemetry(BaseModel):
    """A water temperature reading published on the message bus.

    ``timestamp`` is the observation time as an RFC 3339 string.  It may
    be empty, in which case the reading cannot be ordered and is dropped.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", allow_inf_nan=False)

    origin: TelemetryOrigin = Field(default_factory=TelemetryOrigin)
    temp: float
    timestamp: str | None = None
