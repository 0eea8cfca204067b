from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

import httpx
import structlog
from pydantic import ValidationError

from ..errors import WeatherUpstreamError
from ..schemas.weather import OpenMeteoResponse, WeatherSample
from .cache import ResultStore, SingleFlight, coordinate_key
from .source_fetcher import utc_now

logger = structlog.get_logger(__name__)


@dataclass
class OpenMeteoClient:
    """Current-conditions lookup against the Open-Meteo forecast endpoint.

    Notes:
    - Wind speed is requested in m/s (``wind_speed_unit=ms``).
    - No retries; any failure is raised as ``WeatherUpstreamError``.
    """

    client: httpx.AsyncClient
    base_url: str = "https://api.open-meteo.com/v1/forecast"
    clock: Callable[[], datetime] = field(default=utc_now)

    async def fetch_current(self, lat: float, lon: float) -> WeatherSample:
        params = {
            "latitude": lat,
            "longitude": lon,
            "current": ",".join([
                "temperature_2m",
                "wind_speed_10m",
                "wind_direction_10m",
            ]),
            "wind_speed_unit": "ms",
            "forecast_days": 1,
        }

        try:
            resp = await self.client.get(self.base_url, params=params)
            resp.raise_for_status()
            body = OpenMeteoResponse.model_validate(resp.json())
        except httpx.HTTPStatusError as e:
            raise WeatherUpstreamError(f"HTTP {e.response.status_code}: {e.response.reason_phrase}") from e
        except httpx.RequestError as e:
            raise WeatherUpstreamError(f"Network error: {e}") from e
        except ValidationError as e:
            raise WeatherUpstreamError(f"Unexpected weather payload: {e.error_count()} validation error(s)") from e
        except ValueError as e:
            raise WeatherUpstreamError(f"Invalid JSON response: {e}") from e

        return WeatherSample(
            latitude=lat,
            longitude=lon,
            temperature=body.current.temperature_2m,
            wind_speed=body.current.wind_speed_10m,
            wind_direction=body.current.wind_direction_10m,
            timestamp=self.clock(),
        )


class WeatherService:
    def __init__(self, client: OpenMeteoClient, store: ResultStore, flights: SingleFlight) -> None:
        self.client = client
        self.store = store
        self.flights = flights

    async def get_weather(self, lat: float, lon: float) -> WeatherSample:
        key = coordinate_key(lat, lon)
        cached = self.store.weather.get(key)
        if cached is not None:
            logger.debug("weather_cache_hit", key=key)
            return cached
        return await self.flights.do(f"weather:{key}", lambda: self._fetch_and_store(key, lat, lon))

    async def _fetch_and_store(self, key: str, lat: float, lon: float) -> WeatherSample:
        generation = self.store.generation
        try:
            sample = await self.client.fetch_current(lat, lon)
        except WeatherUpstreamError as e:
            logger.error("weather_fetch_failed", key=key, error=str(e))
            raise
        if self.store.generation == generation:
            self.store.weather.set(key, sample)
        return sample
