from typing import Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: str
    message: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"error": "Failed to fetch weather data", "message": "HTTP 502 from upstream"}
            ]
        }
    }
