from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Dict, Generic, Optional, Tuple, TypeVar

import structlog

from ..schemas.balloons import ConsolidatedResult
from ..schemas.weather import WeatherSample

log = structlog.get_logger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]


def coordinate_key(lat: float, lon: float) -> str:
    """Round to 2 decimals (~1.1 km) so near-duplicate lookups share an entry."""
    return f"{lat:.2f},{lon:.2f}"


class TTLSlot(Generic[T]):
    """Single-value cache; stale values are dropped on read, never served."""

    def __init__(self, ttl_s: float, time_func: Clock = time.monotonic) -> None:
        self.ttl_s = float(ttl_s)
        self._time_func = time_func
        self._value: Optional[T] = None
        self._stored_at: float = 0.0

    @property
    def stored_at(self) -> float:
        return self._stored_at

    def get(self) -> Optional[T]:
        if self._value is None:
            return None
        if self._time_func() - self._stored_at < self.ttl_s:
            return self._value
        self._value = None
        return None

    def set(self, value: T) -> None:
        self._value = value
        self._stored_at = self._time_func()

    def invalidate(self) -> None:
        self._value = None
        self._stored_at = 0.0


class KeyedCache(Generic[T]):
    """Keyed cache; ``ttl_s=None`` keeps entries until invalidated."""

    def __init__(self, ttl_s: Optional[float] = None, time_func: Clock = time.monotonic) -> None:
        self.ttl_s = ttl_s
        self._time_func = time_func
        # key -> (stored_at, value)
        self._store: Dict[str, Tuple[float, T]] = {}

    def __len__(self) -> int:
        return len(self._store)

    def get(self, key: str) -> Optional[T]:
        item = self._store.get(key)
        if item is None:
            return None
        stored_at, value = item
        if self.ttl_s is not None and self._time_func() - stored_at >= self.ttl_s:
            self._store.pop(key, None)
            return None
        return value

    def set(self, key: str, value: T) -> None:
        self._store[key] = (self._time_func(), value)

    def clear(self) -> None:
        self._store.clear()


class ResultStore:
    """Process-wide cache for the consolidated result and weather samples.

    ``generation`` advances on every invalidation so a pass that started
    before an invalidation can tell its result is superseded.
    """

    def __init__(
        self,
        balloon_ttl_s: float = 300.0,
        weather_ttl_s: Optional[float] = None,
        time_func: Clock = time.monotonic,
    ) -> None:
        self.balloons: TTLSlot[ConsolidatedResult] = TTLSlot(balloon_ttl_s, time_func)
        self.weather: KeyedCache[WeatherSample] = KeyedCache(weather_ttl_s, time_func)
        self.generation = 0

    def invalidate(self) -> None:
        # No await in here: both caches clear within one event-loop step
        self.balloons.invalidate()
        self.weather.clear()
        self.generation += 1
        log.info("cache_invalidated", generation=self.generation)


class SingleFlight:
    """Coalesce concurrent calls for the same key into one running task."""

    def __init__(self) -> None:
        self._flights: Dict[str, asyncio.Future] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._flights

    async def do(self, key: str, fn: Callable[[], Awaitable[T]], *, fresh: bool = False) -> T:
        """Join the running flight for ``key`` or start one.

        ``fresh=True`` always starts a new flight; later callers join that one.
        A cancelled waiter does not cancel the shared task.
        """
        task = None if fresh else self._flights.get(key)
        if task is None:
            task = asyncio.ensure_future(fn())
            self._flights[key] = task
            task.add_done_callback(lambda t, k=key: self._forget(k, t))
        else:
            log.debug("single_flight_joined", key=key)
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Future) -> None:
        if self._flights.get(key) is task:
            del self._flights[key]
        # Mark the failure retrieved; waiters that are still attached re-raise it
        if not task.cancelled() and task.exception() is not None:
            log.debug("single_flight_failed", key=key, error=repr(task.exception()))
