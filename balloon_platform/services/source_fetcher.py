from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional

import httpx
import structlog

from ..schemas.balloons import PositionRecord, QualityGrade
from .validator import validate_entry

logger = structlog.get_logger(__name__)

# Inclusive lower bounds, checked in order
GRADE_THRESHOLDS = (
    (0.95, QualityGrade.HEALTHY),
    (0.80, QualityGrade.GOOD),
    (0.50, QualityGrade.PARTIAL),
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def snapshot_file_name(index: int) -> str:
    return f"{index:02d}.json"


def grade_for(valid_count: int, total_count: int) -> QualityGrade:
    """Grade a file by its share of valid entries; an empty file is an error."""
    rate = valid_count / total_count if total_count > 0 else 0.0
    for threshold, grade in GRADE_THRESHOLDS:
        if rate >= threshold:
            return grade
    return QualityGrade.ERROR


@dataclass(frozen=True)
class SourceFileResult:
    """Outcome of fetching one snapshot file.

    A failed fetch is still a result: no records, grade ``error`` and the
    reason in ``error``.
    """

    file_name: str
    hours_ago: int
    records: List[PositionRecord] = field(default_factory=list)
    grade: QualityGrade = QualityGrade.ERROR
    valid_count: int = 0
    total_count: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, file_name: str, hours_ago: int, reason: str) -> "SourceFileResult":
        return cls(file_name=file_name, hours_ago=hours_ago, error=reason)


class SourceFetcher:
    """Fetches and validates a single hourly snapshot file."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._client = client
        self.base_url = base_url.rstrip("/")
        self._clock = clock

    async def fetch(self, file_name: str, hours_ago: int) -> SourceFileResult:
        url = f"{self.base_url}/{file_name}"

        try:
            response = await self._client.get(url)
            response.raise_for_status()
            raw = response.json()
        except httpx.TimeoutException as e:
            return self._failed(file_name, hours_ago, f"Request timeout: {e}")
        except httpx.HTTPStatusError as e:
            return self._failed(file_name, hours_ago, f"HTTP {e.response.status_code}: {e.response.reason_phrase}")
        except httpx.RequestError as e:
            return self._failed(file_name, hours_ago, f"Network error: {e}")
        except ValueError as e:
            return self._failed(file_name, hours_ago, f"Invalid JSON response: {e}")
        except httpx.HTTPError as e:
            return self._failed(file_name, hours_ago, f"HTTP client error: {e}")

        if not isinstance(raw, list):
            return self._failed(file_name, hours_ago, "Invalid data format: expected array")

        reference_time = self._clock()
        records: List[PositionRecord] = []
        for index, entry in enumerate(raw):
            record = validate_entry(entry, index, file_name, hours_ago, reference_time)
            if record is not None:
                records.append(record)

        grade = grade_for(len(records), len(raw))
        logger.debug(
            "snapshot_fetched",
            file=file_name,
            valid=len(records),
            total=len(raw),
            grade=grade.value,
        )
        return SourceFileResult(
            file_name=file_name,
            hours_ago=hours_ago,
            records=records,
            grade=grade,
            valid_count=len(records),
            total_count=len(raw),
        )

    @staticmethod
    def _failed(file_name: str, hours_ago: int, reason: str) -> SourceFileResult:
        logger.warning("snapshot_fetch_failed", file=file_name, error=reason)
        return SourceFileResult.failed(file_name, hours_ago, reason)
