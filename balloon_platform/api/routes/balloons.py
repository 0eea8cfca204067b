from typing import Optional

from fastapi import APIRouter, Query, Request

import structlog
from ...errors import ApiError
from ...schemas.balloons import (
    ConsolidatedResult,
    PositionRecord,
    QualityReport,
    RefreshResponse,
    TimeWindow,
)
from ...schemas.errors import ErrorResponse

router = APIRouter()
logger = structlog.get_logger()

RECENT_HOURS = 6


def _matches(record: PositionRecord, window: Optional[TimeWindow], max_hours_ago: Optional[int]) -> bool:
    if window == TimeWindow.CURRENT and record.hours_ago != 0:
        return False
    if window == TimeWindow.RECENT and record.hours_ago > RECENT_HOURS:
        return False
    if max_hours_ago is not None and record.hours_ago > max_hours_ago:
        return False
    return True


@router.get(
    "/balloons",
    response_model=ConsolidatedResult,
    summary="Consolidated balloon positions",
    responses={
        200: {
            "description": "Positions from all snapshot files with per-file quality",
            "content": {
                "application/json": {
                    "example": {
                        "balloons": [
                            {
                                "id": "00.json-0",
                                "latitude": 45.0,
                                "longitude": 90.0,
                                "altitude": 100.0,
                                "timestamp": "2026-01-21T19:00:00Z",
                                "hoursAgo": 0,
                                "dataSource": "00.json",
                            }
                        ],
                        "totalCount": 1,
                        "dataQuality": {"00.json": "healthy", "01.json": "error"},
                        "lastUpdated": "2026-01-21T19:00:00Z",
                    }
                }
            },
        },
        400: {"model": ErrorResponse, "description": "Invalid filter"},
        500: {"model": ErrorResponse, "description": "Consolidation failed"},
    },
)
async def get_balloons(
    request: Request,
    window: Optional[TimeWindow] = Query(None, description="current = this hour, recent = last 6 hours, all = 24 hours"),
    max_hours_ago: Optional[int] = Query(None, ge=0, le=24),
) -> ConsolidatedResult:
    service = request.app.state.balloon_service
    try:
        data = await service.get_consolidated()
    except Exception as e:
        logger.exception("balloons_failed", error=str(e))
        raise ApiError(500, "Failed to fetch balloon data", str(e)) from e

    if window is None and max_hours_ago is None:
        return data
    return data.filtered(lambda r: _matches(r, window, max_hours_ago))


@router.get(
    "/quality",
    response_model=QualityReport,
    summary="Per-file data quality",
    responses={500: {"model": ErrorResponse, "description": "Consolidation failed"}},
)
async def get_quality(request: Request) -> QualityReport:
    service = request.app.state.balloon_service
    try:
        data = await service.get_consolidated()
    except Exception as e:
        logger.exception("quality_failed", error=str(e))
        raise ApiError(500, "Failed to fetch balloon data", str(e)) from e

    return QualityReport(
        files=data.sources,
        current_count=sum(1 for b in data.balloons if b.hours_ago == 0),
        total_count=data.total_count,
        last_updated=data.last_updated,
    )


@router.post(
    "/refresh",
    response_model=RefreshResponse,
    summary="Invalidate caches and re-consolidate",
    responses={500: {"model": ErrorResponse, "description": "Refresh failed"}},
)
async def refresh(request: Request) -> RefreshResponse:
    service = request.app.state.balloon_service
    try:
        data = await service.refresh()
    except Exception as e:
        logger.exception("refresh_failed", error=str(e))
        raise ApiError(500, "Failed to refresh data", str(e)) from e

    logger.info("refresh_completed", total_count=data.total_count)
    return RefreshResponse(success=True, data=data)
