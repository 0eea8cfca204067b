from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class WeatherSample(BaseModel):
    """Current conditions at the queried point (not necessarily a balloon's position)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    latitude: float
    longitude: float
    temperature: float = Field(..., description="Celsius")
    wind_speed: float = Field(..., alias="windSpeed", description="Metres per second")
    wind_direction: float = Field(..., alias="windDirection", description="Degrees")
    timestamp: datetime


class OpenMeteoCurrent(BaseModel):
    temperature_2m: float
    wind_speed_10m: float
    wind_direction_10m: float


class OpenMeteoResponse(BaseModel):
    """Subset of the Open-Meteo forecast body that is required."""

    current: OpenMeteoCurrent
