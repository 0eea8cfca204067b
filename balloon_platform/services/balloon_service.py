from __future__ import annotations

import structlog

from ..errors import ConsolidationError
from ..schemas.balloons import ConsolidatedResult
from .cache import ResultStore, SingleFlight
from .consolidator import Consolidator

logger = structlog.get_logger(__name__)

BALLOON_FLIGHT_KEY = "balloons"


class BalloonService:
    def __init__(self, consolidator: Consolidator, store: ResultStore, flights: SingleFlight) -> None:
        self.consolidator = consolidator
        self.store = store
        self.flights = flights

    async def get_consolidated(self) -> ConsolidatedResult:
        cached = self.store.balloons.get()
        if cached is not None:
            logger.debug("balloon_cache_hit", last_updated=cached.last_updated.isoformat())
            return cached
        logger.info("balloon_cache_miss", joining=self.flights.in_flight(BALLOON_FLIGHT_KEY))
        return await self.flights.do(BALLOON_FLIGHT_KEY, self._consolidate_and_store)

    async def refresh(self) -> ConsolidatedResult:
        """Drop every cached value and run a new pass, ignoring any in flight."""
        self.store.invalidate()
        return await self.flights.do(BALLOON_FLIGHT_KEY, self._consolidate_and_store, fresh=True)

    async def _consolidate_and_store(self) -> ConsolidatedResult:
        generation = self.store.generation
        try:
            result = await self.consolidator.consolidate()
        except Exception as e:
            logger.exception("consolidation_failed", error=str(e))
            raise ConsolidationError(str(e)) from e

        if self.store.generation == generation:
            self.store.balloons.set(result)
        else:
            logger.info("consolidation_superseded", last_updated=result.last_updated.isoformat())
        return result
