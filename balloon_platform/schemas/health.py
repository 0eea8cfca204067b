from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = Field()
    uptime_s: float = Field(ge=0)
    version: str = Field()
    app_name: str = Field()
    app_env: str = Field()
    balloon_cache_warm: bool = Field(description="True while a fresh consolidated result is cached")
    last_updated: Optional[datetime] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "status": "ok",
                    "uptime_s": 12.34,
                    "version": "0.1.0",
                    "app_name": "BalloonTracker",
                    "app_env": "development",
                    "balloon_cache_warm": True,
                    "last_updated": "2026-01-21T19:00:00Z",
                }
            ]
        }
    }
