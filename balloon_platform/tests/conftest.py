from typing import Any, Dict, List, Optional

import httpx
import pytest

from balloon_platform.config import AppSettings

BALLOON_HOST = "balloons.test"
WEATHER_HOST = "weather.test"
BALLOON_BASE_URL = f"https://{BALLOON_HOST}/treasure"
WEATHER_BASE_URL = f"https://{WEATHER_HOST}/v1/forecast"

DEFAULT_SNAPSHOT = [[45.0, 90.0, 100.0], [-12.5, 170.25, 18000.0]]

WEATHER_BODY = {
    "latitude": 45.0,
    "longitude": 90.0,
    "current": {
        "time": "2026-01-21T19:00",
        "temperature_2m": -3.2,
        "wind_speed_10m": 7.4,
        "wind_direction_10m": 250.0,
    },
}


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _reply(request: httpx.Request, payload: Any) -> httpx.Response:
    if isinstance(payload, Exception):
        raise payload
    if isinstance(payload, httpx.Response):
        # fresh copy so one canned response can be served repeatedly
        return httpx.Response(payload.status_code, content=payload.content, headers=payload.headers)
    return httpx.Response(200, json=payload)


def make_transport(
    snapshots: Optional[Dict[str, Any]] = None,
    weather: Any = None,
    calls: Optional[List[str]] = None,
) -> httpx.MockTransport:
    """Fake both upstreams.

    ``snapshots`` maps file names to a JSON payload, an ``httpx.Response`` or
    an exception to raise; unmapped files serve ``DEFAULT_SNAPSHOT``.
    ``calls`` collects the path of every request.
    """
    snapshots = snapshots or {}

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request.url.path)
        if request.url.host == BALLOON_HOST:
            name = request.url.path.rsplit("/", 1)[-1]
            return _reply(request, snapshots.get(name, DEFAULT_SNAPSHOT))
        if request.url.host == WEATHER_HOST:
            return _reply(request, WEATHER_BODY if weather is None else weather)
        return httpx.Response(404)

    return httpx.MockTransport(handler)


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        balloon_base_url=BALLOON_BASE_URL,
        weather_base_url=WEATHER_BASE_URL,
        log_level="WARNING",
    )
