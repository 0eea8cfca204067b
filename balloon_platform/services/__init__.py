"""Consolidation pipeline and caching.

Provides the record validator, the snapshot fetcher, the consolidator, the
result caches and the services the HTTP routes call.
"""

from .balloon_service import BalloonService
from .cache import KeyedCache, ResultStore, SingleFlight, TTLSlot
from .consolidator import Consolidator
from .source_fetcher import SourceFetcher, SourceFileResult, grade_for
from .validator import validate_entry
from .weather_service import OpenMeteoClient, WeatherService

__all__ = [
    "BalloonService",
    "Consolidator",
    "KeyedCache",
    "OpenMeteoClient",
    "ResultStore",
    "SingleFlight",
    "SourceFetcher",
    "SourceFileResult",
    "TTLSlot",
    "WeatherService",
    "grade_for",
    "validate_entry",
]
