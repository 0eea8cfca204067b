from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Callable, Dict, List

import structlog

from ..schemas.balloons import ConsolidatedResult, PositionRecord, QualityGrade, SourceQuality
from .source_fetcher import SourceFetcher, SourceFileResult, snapshot_file_name, utc_now

logger = structlog.get_logger(__name__)

SNAPSHOT_COUNT = 24


class Consolidator:
    """Runs one consolidation pass over every snapshot file.

    All fetches are started together and every outcome is awaited before the
    result is built; one file failing never cancels or degrades another.
    """

    def __init__(
        self,
        fetcher: SourceFetcher,
        snapshot_count: int = SNAPSHOT_COUNT,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.fetcher = fetcher
        self.snapshot_count = snapshot_count
        self._clock = clock

    async def consolidate(self) -> ConsolidatedResult:
        file_names = [snapshot_file_name(i) for i in range(self.snapshot_count)]
        outcomes = await asyncio.gather(
            *(self.fetcher.fetch(name, hours_ago) for hours_ago, name in enumerate(file_names)),
            return_exceptions=True,
        )

        balloons: List[PositionRecord] = []
        data_quality: Dict[str, QualityGrade] = {}
        sources: List[SourceQuality] = []
        for hours_ago, (name, outcome) in enumerate(zip(file_names, outcomes)):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    # CancelledError and friends are not per-file failures
                    raise outcome
                logger.warning("snapshot_fetch_raised", file=name, error=repr(outcome))
                outcome = SourceFileResult.failed(name, hours_ago, str(outcome) or type(outcome).__name__)

            balloons.extend(outcome.records)
            data_quality[name] = outcome.grade
            sources.append(
                SourceQuality(
                    file=name,
                    status=outcome.grade,
                    record_count=len(outcome.records),
                    error=outcome.error,
                )
            )

        result = ConsolidatedResult(
            balloons=balloons,
            total_count=len(balloons),
            data_quality=data_quality,
            last_updated=self._clock(),
            sources=sources,
        )
        failed = sum(1 for s in sources if s.error is not None)
        logger.info(
            "consolidation_completed",
            total_count=result.total_count,
            files=len(file_names),
            failed_files=failed,
        )
        return result
