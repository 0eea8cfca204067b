from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class QualityGrade(str, Enum):
    HEALTHY = "healthy"
    GOOD = "good"
    PARTIAL = "partial"
    ERROR = "error"


class PositionRecord(BaseModel):
    """One validated balloon position taken from a snapshot file."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    altitude: float = Field(..., ge=0, description="Metres")
    timestamp: datetime
    hours_ago: int = Field(..., ge=0, alias="hoursAgo")
    data_source: str = Field(..., alias="dataSource")


class SourceQuality(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    file: str
    status: QualityGrade
    record_count: int = Field(0, ge=0, alias="recordCount")
    error: Optional[str] = None


class ConsolidatedResult(BaseModel):
    """Merged output of one consolidation pass.

    ``data_quality`` holds one entry per snapshot file in file-index order.
    ``sources`` keeps the per-file detail for the quality report and is left
    out of serialized output.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    balloons: List[PositionRecord] = Field(default_factory=list)
    total_count: int = Field(0, ge=0, alias="totalCount")
    data_quality: Dict[str, QualityGrade] = Field(default_factory=dict, alias="dataQuality")
    last_updated: datetime = Field(..., alias="lastUpdated")
    sources: List[SourceQuality] = Field(default_factory=list, exclude=True)

    @model_validator(mode="after")
    def _check_total_count(self) -> "ConsolidatedResult":
        if self.total_count != len(self.balloons):
            raise ValueError(
                f"totalCount {self.total_count} does not match {len(self.balloons)} balloons"
            )
        return self

    def filtered(self, keep: Callable[[PositionRecord], bool]) -> "ConsolidatedResult":
        """Return a copy holding only the records ``keep`` accepts."""
        balloons = [b for b in self.balloons if keep(b)]
        return ConsolidatedResult(
            balloons=balloons,
            total_count=len(balloons),
            data_quality=dict(self.data_quality),
            last_updated=self.last_updated,
            sources=list(self.sources),
        )


class TimeWindow(str, Enum):
    CURRENT = "current"
    RECENT = "recent"
    ALL = "all"


class QualityReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    files: List[SourceQuality]
    current_count: int = Field(..., ge=0, alias="currentCount")
    total_count: int = Field(..., ge=0, alias="totalCount")
    last_updated: datetime = Field(..., alias="lastUpdated")


class RefreshResponse(BaseModel):
    success: bool = True
    data: ConsolidatedResult
