from typing import Optional

import time
from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from ..config import AppSettings
from ..errors import ApiError, InvalidRequestError
from ..logging import init_logging
from .middleware import (
    RequestIDMiddleware,
    api_error_handler,
    generic_exception_handler,
    invalid_request_handler,
    validation_exception_handler,
)
from .routes import balloons, health, weather
from ..services.balloon_service import BalloonService
from ..services.cache import ResultStore, SingleFlight
from ..services.consolidator import Consolidator
from ..services.source_fetcher import SourceFetcher
from ..services.weather_service import OpenMeteoClient, WeatherService

logger = structlog.get_logger()


def create_app(
    settings: Optional[AppSettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    settings = settings or AppSettings()
    init_logging(settings.log_level, service=settings.app_name, env=settings.app_env)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("startup", app=settings.app_name, env=settings.app_env)
        yield
        await app.state.http_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "health", "description": "Service health and uptime"},
            {"name": "balloons", "description": "Consolidated balloon positions"},
            {"name": "weather", "description": "Current weather lookups"},
        ],
    )

    app.add_middleware(RequestIDMiddleware)
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(InvalidRequestError, invalid_request_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(balloons.router, prefix="/api", tags=["balloons"])
    app.include_router(weather.router, prefix="/api", tags=["weather"])

    app.state.settings = settings
    app.state.start_time = time.time()
    # One client, one cache and one single-flight table per process
    app.state.http_client = httpx.AsyncClient(
        timeout=settings.fetch_timeout_s,
        transport=transport,
        headers={
            "User-Agent": f"{settings.app_name}/{settings.app_version}",
            "Accept": "application/json",
        },
    )
    app.state.result_store = ResultStore(
        balloon_ttl_s=settings.balloon_cache_ttl_s,
        weather_ttl_s=settings.weather_cache_ttl_s,
    )
    app.state.flights = SingleFlight()
    app.state.balloon_service = BalloonService(
        Consolidator(
            SourceFetcher(app.state.http_client, settings.balloon_base_url),
            snapshot_count=settings.snapshot_count,
        ),
        app.state.result_store,
        app.state.flights,
    )
    app.state.weather_service = WeatherService(
        OpenMeteoClient(app.state.http_client, base_url=settings.weather_base_url),
        app.state.result_store,
        app.state.flights,
    )

    return app


if __name__ == "__main__":
    import uvicorn

    s = AppSettings()
    uvicorn.run(create_app(s), host=s.host, port=s.port)
