"""
Best-effort temperature unit inference for WindBorne station history.

The provider does not say which unit a station reports in, so we look at the
whole batch for one station and guess. A batch is treated as Fahrenheit if
ANY of these hold (finite readings only):

  - more than 70% of readings fall in [32, 100]
  - the average is in [32, 100] and the max is below 130
  - every reading is in [32, 100] and there are more than 5 of them
  - the max is in (50, 130) and the average is above 40

Fahrenheit batches are converted wholesale. Otherwise a per-reading pass still
converts any value in [32, 100] when the batch max is in (50, 130), which
catches mixed-unit batches.

Known limitation: a genuinely hot Celsius station (average around 38 C) will
be read as Fahrenheit. The thresholds stay as they are until there is real
data to tune them against.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

F_RANGE_LOW = 32.0
F_RANGE_HIGH = 100.0
F_RATIO_THRESHOLD = 0.7
MAX_PLAUSIBLE_F = 130.0
MAX_PLAUSIBLE_C = 50.0


def fahrenheit_to_celsius(f: float) -> float:
    return (f - 32.0) * 5.0 / 9.0


def to_reading(value: Any) -> float | None:
    """Coerce a raw temperature field to a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        reading = float(value)
    except (TypeError, ValueError):
        return None
    return reading if math.isfinite(reading) else None


def _in_f_range(t: float) -> bool:
    return F_RANGE_LOW <= t <= F_RANGE_HIGH


@dataclass(frozen=True)
class UnitDecision:
    """Batch statistics and the verdict derived from them."""
    is_fahrenheit: bool
    count: int
    average: float
    maximum: float
    minimum: float
    fahrenheit_ratio: float

    @property
    def mixed_unit_pass(self) -> bool:
        """True when the per-reading correction pass applies."""
        return MAX_PLAUSIBLE_C < self.maximum < MAX_PLAUSIBLE_F


def classify(readings: list[float]) -> UnitDecision | None:
    """Decide whether a batch of finite readings is Fahrenheit. None if empty."""
    temps = [t for t in readings if math.isfinite(t)]
    if not temps:
        return None

    average = sum(temps) / len(temps)
    maximum = max(temps)
    minimum = min(temps)
    ratio = sum(1 for t in temps if _in_f_range(t)) / len(temps)

    likely_fahrenheit = (
        ratio > F_RATIO_THRESHOLD
        or (F_RANGE_LOW <= average <= F_RANGE_HIGH and maximum < MAX_PLAUSIBLE_F)
        or (minimum >= F_RANGE_LOW and maximum <= F_RANGE_HIGH and len(temps) > 5)
        or (MAX_PLAUSIBLE_C < maximum < MAX_PLAUSIBLE_F and average > 40)
    )

    return UnitDecision(
        is_fahrenheit=likely_fahrenheit,
        count=len(temps),
        average=average,
        maximum=maximum,
        minimum=minimum,
        fahrenheit_ratio=ratio,
    )


def normalize_readings(readings: list[float]) -> list[float]:
    """Return readings in Celsius according to the batch heuristic."""
    decision = classify(readings)
    if decision is None:
        return list(readings)
    return [_convert(t, decision) for t in readings]


def _convert(t: float, decision: UnitDecision) -> float:
    if not math.isfinite(t):
        return t
    if decision.is_fahrenheit:
        return fahrenheit_to_celsius(t)
    if _in_f_range(t) and decision.mixed_unit_pass:
        return fahrenheit_to_celsius(t)
    return t


def normalize_points(points: list[dict[str, Any]], station_id: str = "") -> list[dict[str, Any]]:
    """
    Convert the `temperature` field of raw history points to Celsius.

    Points are copied, never mutated. Points whose temperature is not a finite
    number are passed through untouched (the cleaner drops them later).
    """
    readings = [to_reading(p.get("temperature")) for p in points]
    decision = classify([r for r in readings if r is not None])
    if decision is None:
        return [dict(p) for p in points]

    if decision.is_fahrenheit:
        logger.info(
            "Station %s: detected Fahrenheit (avg %.1f, range %.1f-%.1f, %.0f%% in 32-100), converting",
            station_id,
            decision.average,
            decision.minimum,
            decision.maximum,
            decision.fahrenheit_ratio * 100,
        )
    elif decision.maximum > MAX_PLAUSIBLE_C:
        logger.warning(
            "Station %s: high temperatures (max %.1f, avg %.1f) kept as Celsius",
            station_id,
            decision.maximum,
            decision.average,
        )

    out: list[dict[str, Any]] = []
    converted: list[float] = []
    for point, reading in zip(points, readings):
        copy = dict(point)
        if reading is not None:
            copy["temperature"] = _convert(reading, decision)
            converted.append(copy["temperature"])
        out.append(copy)

    if decision.is_fahrenheit and converted:
        avg_converted = sum(converted) / len(converted)
        if avg_converted > MAX_PLAUSIBLE_C:
            logger.warning(
                "Station %s: average still %.1f C after conversion, check units",
                station_id,
                avg_converted,
            )
    return out
