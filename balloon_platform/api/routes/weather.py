import math
from typing import Optional, Tuple

from fastapi import APIRouter, Query, Request

import structlog
from ...errors import ApiError, InvalidRequestError
from ...schemas.errors import ErrorResponse
from ...schemas.weather import WeatherSample

router = APIRouter()
logger = structlog.get_logger()


def parse_coordinates(lat: Optional[str], lon: Optional[str]) -> Tuple[float, float]:
    if not lat or not lon:
        raise InvalidRequestError("Latitude and longitude are required")
    try:
        latitude = float(lat)
        longitude = float(lon)
    except ValueError:
        raise InvalidRequestError("Latitude and longitude must be valid numbers") from None
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise InvalidRequestError("Latitude and longitude must be valid numbers")
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        raise InvalidRequestError("Latitude must be within [-90, 90] and longitude within [-180, 180]")
    return latitude, longitude


@router.get(
    "/weather",
    response_model=WeatherSample,
    summary="Current weather at a point",
    responses={
        200: {
            "description": "Temperature and wind at the queried coordinates",
            "content": {
                "application/json": {
                    "example": {
                        "latitude": 45.0,
                        "longitude": 90.0,
                        "temperature": -3.2,
                        "windSpeed": 7.4,
                        "windDirection": 250.0,
                        "timestamp": "2026-01-21T19:00:00Z",
                    }
                }
            },
        },
        400: {"model": ErrorResponse, "description": "Missing or invalid coordinates"},
        500: {"model": ErrorResponse, "description": "Weather provider failed"},
    },
)
async def get_weather(
    request: Request,
    lat: Optional[str] = Query(None),
    lon: Optional[str] = Query(None),
) -> WeatherSample:
    latitude, longitude = parse_coordinates(lat, lon)

    service = request.app.state.weather_service
    try:
        return await service.get_weather(latitude, longitude)
    except Exception as e:
        logger.exception("weather_failed", lat=latitude, lon=longitude, error=str(e))
        raise ApiError(500, "Failed to fetch weather data", str(e)) from e
