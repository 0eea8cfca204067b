from __future__ import annotations

import math
from datetime import datetime, timedelta
from numbers import Real
from typing import Any, Optional

from ..schemas.balloons import PositionRecord


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a coordinate
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # JSON integers beyond float range
        return False


def validate_entry(
    entry: Any,
    index: int,
    source: str,
    hours_ago: int,
    reference_time: datetime,
) -> Optional[PositionRecord]:
    """Normalize one raw ``[lat, lon, alt, ...]`` entry.

    Returns ``None`` for anything that is not a list/tuple whose first three
    elements are finite numbers within range; extra trailing elements are
    ignored. Never raises for bad input.
    """
    if not isinstance(entry, (list, tuple)) or len(entry) < 3:
        return None

    lat, lon, alt = entry[0], entry[1], entry[2]
    if not (_is_number(lat) and _is_number(lon) and _is_number(alt)):
        return None

    if not (-90 <= lat <= 90 and -180 <= lon <= 180 and alt >= 0):
        return None

    return PositionRecord(
        id=f"{source}-{index}",
        latitude=float(lat),
        longitude=float(lon),
        altitude=float(alt),
        timestamp=reference_time - timedelta(hours=hours_ago),
        hours_ago=hours_ago,
        data_source=source,
    )
