import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import httpx
import pytest

from balloon_platform.schemas.balloons import QualityGrade
from balloon_platform.services.consolidator import Consolidator
from balloon_platform.services.source_fetcher import SourceFetcher, SourceFileResult

from .conftest import BALLOON_BASE_URL, DEFAULT_SNAPSHOT, make_transport

FINISHED = datetime(2026, 1, 21, 19, 5, tzinfo=timezone.utc)
EXPECTED_KEYS = [f"{i:02d}.json" for i in range(24)]


@asynccontextmanager
async def _fetcher(transport: httpx.MockTransport):
    async with httpx.AsyncClient(transport=transport) as client:
        yield SourceFetcher(client, BALLOON_BASE_URL)


async def _consolidate(transport: httpx.MockTransport):
    async with _fetcher(transport) as fetcher:
        return await Consolidator(fetcher, clock=lambda: FINISHED).consolidate()


@pytest.mark.asyncio
async def test_all_files_healthy():
    calls = []
    result = await _consolidate(make_transport(calls=calls))

    assert sorted(calls) == [f"/treasure/{k}" for k in EXPECTED_KEYS]
    assert list(result.data_quality) == EXPECTED_KEYS
    assert set(result.data_quality.values()) == {QualityGrade.HEALTHY}
    assert result.total_count == len(result.balloons) == 24 * len(DEFAULT_SNAPSHOT)
    assert result.last_updated == FINISHED


@pytest.mark.asyncio
async def test_failed_files_keep_their_slot_and_do_not_affect_others():
    snapshots = {
        "00.json": httpx.Response(503),
        "05.json": httpx.ConnectError("refused"),
        "11.json": {"not": "a list"},
        "23.json": [],
    }
    result = await _consolidate(make_transport(snapshots))

    assert list(result.data_quality) == EXPECTED_KEYS
    for name in snapshots:
        assert result.data_quality[name] is QualityGrade.ERROR
    healthy = [k for k in EXPECTED_KEYS if k not in snapshots]
    assert all(result.data_quality[k] is QualityGrade.HEALTHY for k in healthy)
    assert result.total_count == len(result.balloons) == len(healthy) * len(DEFAULT_SNAPSHOT)
    assert "refused" in next(s for s in result.sources if s.file == "05.json").error


@pytest.mark.asyncio
async def test_oversized_number_does_not_discard_its_file():
    rows = [[float(i), 1.0, 100.0] for i in range(19)] + [[10**400, 1.0, 100.0]]
    result = await _consolidate(make_transport({"08.json": rows}))

    assert result.data_quality["08.json"] is QualityGrade.HEALTHY
    assert sum(1 for b in result.balloons if b.data_source == "08.json") == 19
    assert next(s for s in result.sources if s.file == "08.json").error is None


@pytest.mark.asyncio
async def test_every_file_failing_still_yields_a_result():
    snapshots = {k: httpx.Response(500) for k in EXPECTED_KEYS}
    result = await _consolidate(make_transport(snapshots))

    assert result.balloons == []
    assert result.total_count == 0
    assert list(result.data_quality) == EXPECTED_KEYS
    assert set(result.data_quality.values()) == {QualityGrade.ERROR}


@pytest.mark.asyncio
async def test_records_concatenate_in_file_then_entry_order():
    snapshots = {k: [[float(i), 0.0, 1.0], [float(i), 1.0, 1.0]] for i, k in enumerate(EXPECTED_KEYS)}
    result = await _consolidate(make_transport(snapshots))

    assert [b.id for b in result.balloons[:4]] == ["00.json-0", "00.json-1", "01.json-0", "01.json-1"]
    assert [b.hours_ago for b in result.balloons] == sorted(b.hours_ago for b in result.balloons)
    assert result.balloons[-1].id == "23.json-1"


class ExplodingFetcher(SourceFetcher):
    """Raises past the fetcher boundary for one file."""

    def __init__(self, inner: SourceFetcher, bad: str) -> None:
        self.inner = inner
        self.bad = bad

    async def fetch(self, file_name: str, hours_ago: int) -> SourceFileResult:
        if file_name == self.bad:
            raise RuntimeError("parser blew up")
        return await self.inner.fetch(file_name, hours_ago)


@pytest.mark.asyncio
async def test_exception_escaping_fetcher_is_contained():
    async with _fetcher(make_transport()) as inner:
        consolidator = Consolidator(ExplodingFetcher(inner, "07.json"), clock=lambda: FINISHED)
        result = await consolidator.consolidate()

    assert result.data_quality["07.json"] is QualityGrade.ERROR
    assert not any(b.data_source == "07.json" for b in result.balloons)
    assert list(result.data_quality) == EXPECTED_KEYS
    detail = next(s for s in result.sources if s.file == "07.json")
    assert detail.record_count == 0
    assert "parser blew up" in detail.error


class SlowFetcher:
    """Tracks how many fetches are in flight at once."""

    def __init__(self) -> None:
        self.active = 0
        self.peak = 0

    async def fetch(self, file_name: str, hours_ago: int) -> SourceFileResult:
        self.active += 1
        self.peak = max(self.peak, self.active)
        await asyncio.sleep(0.01)
        self.active -= 1
        return SourceFileResult(file_name=file_name, hours_ago=hours_ago, grade=QualityGrade.ERROR)


@pytest.mark.asyncio
async def test_fetches_run_concurrently():
    fetcher = SlowFetcher()
    result = await Consolidator(fetcher, clock=lambda: FINISHED).consolidate()

    assert fetcher.peak == 24
    assert len(result.data_quality) == 24
