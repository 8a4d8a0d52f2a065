"""
Observation cleaning and the data-quality percentage shown next to a station.

An observation survives only if its timestamp parses to a real instant and its
temperature (already converted to Celsius) is finite and within [-50, 50].
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from services.scout.weather.units import to_reading

MIN_TEMP_C = -50.0
MAX_TEMP_C = 50.0


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp (trailing 'Z' allowed). None if invalid."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def is_clean(point: dict[str, Any]) -> bool:
    if parse_timestamp(point.get("timestamp")) is None:
        return False
    temp = to_reading(point.get("temperature"))
    if temp is None or not math.isfinite(temp):
        return False
    return MIN_TEMP_C <= temp <= MAX_TEMP_C


def clean(points: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Drop corrupt observations. Surviving entries are returned as-is."""
    return [p for p in points if is_clean(p)]


def data_quality(raw_count: int, kept_count: int) -> int:
    """Percentage of raw observations that survived cleaning (0-100)."""
    if raw_count <= 0 or kept_count <= 0:
        return 0
    return round(100 * min(kept_count, raw_count) / raw_count)
