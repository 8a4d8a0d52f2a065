"""
Destination scoring: three 0-100 sub-scores and a weighted composite.

  composite = 0.4 * price + 0.3 * temperature + 0.3 * duration

Every function here is pure: same inputs, same float out. Malformed inputs
(non-finite, or non-positive where a positive value is required) score 0 for
that factor instead of raising, so one bad row never aborts a ranking pass.

Out-of-range values floor at 5 rather than 0: a destination that misses on
one factor is still rankable, just heavily discounted.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

PRICE_WEIGHT = 0.4
TEMPERATURE_WEIGHT = 0.3
DURATION_WEIGHT = 0.3

SCORE_MAX = 100.0
SCORE_FLOOR = 5.0
MAX_PENALTY = 95.0

# Temperature band widths below this are treated as this wide when scaling.
MIN_REFERENCE_RANGE_C = 5.0


@dataclass(frozen=True)
class TemperaturePreference:
    min: float
    max: float


def _finite(*values: float) -> bool:
    return all(isinstance(v, (int, float)) and math.isfinite(v) for v in values)


def weather_score(temp: float, pref: TemperaturePreference) -> float:
    """100 inside [min, max]; decays with distance from the nearest bound."""
    if not _finite(temp, pref.min, pref.max):
        return 0.0
    if pref.min <= temp <= pref.max:
        return SCORE_MAX

    distance = pref.min - temp if temp < pref.min else temp - pref.max
    reference = max(pref.max - pref.min, MIN_REFERENCE_RANGE_C)
    # 1x the band away loses 50 points
    penalty = min((distance / reference) * 50, MAX_PENALTY)
    return max(SCORE_FLOOR, SCORE_MAX - penalty)


def price_score(price: float, budget: float) -> float:
    """
    100 at exactly the budget.

    Below budget the score stays in [70, 100] and rises toward the budget: a
    fare far under budget is more often thin data than a real bargain.
    Above budget the penalty is linear up to 50% over, steeper beyond.
    """
    if not _finite(price) or price <= 0:
        return 0.0
    if not _finite(budget) or budget <= 0:
        return 0.0

    if price == budget:
        return SCORE_MAX

    ratio = price / budget
    if price < budget:
        if ratio >= 0.8:
            return 95 + (ratio - 0.8) * 25
        if ratio >= 0.5:
            return 85 + (ratio - 0.5) * 33.33
        return 70 + (ratio / 0.5) * 15

    overage = ratio - 1
    if overage > 0.5:
        penalty = 50 + (overage - 0.5) * 90
    else:
        penalty = overage * 100
    penalty = min(penalty, MAX_PENALTY)
    return max(SCORE_FLOOR, SCORE_MAX - penalty)


def duration_score(duration_minutes: float, shortest_minutes: float) -> float:
    """100 for the shortest flight in the compared set; longer ones are penalized."""
    if not _finite(duration_minutes) or duration_minutes <= 0:
        return 0.0
    if not _finite(shortest_minutes) or shortest_minutes <= 0:
        return 0.0
    if duration_minutes <= shortest_minutes:
        return SCORE_MAX

    over = duration_minutes / shortest_minutes - 1
    if over > 0.5:
        penalty = 40 + (over - 0.5) * 100
    else:
        penalty = over * 80
    penalty = min(penalty, MAX_PENALTY)
    return max(SCORE_FLOOR, SCORE_MAX - penalty)


def duration_rank_score(rank: int, total: int) -> float:
    """
    Ordinal variant of duration_score for when only the rank is known.

    rank is 1-based. Three options score 100 / 67 / 33; longer lists are
    interpolated linearly on the same scale.
    """
    if isinstance(rank, bool) or isinstance(total, bool):
        return 0.0
    if total < 1 or rank < 1 or rank > total:
        return 0.0
    return max(SCORE_FLOOR, float(round(SCORE_MAX * (total - rank + 1) / total)))


def composite(
    temp: float,
    price: float,
    pref: TemperaturePreference,
    budget: float,
    duration_minutes: float,
    shortest_minutes: float,
) -> float:
    """Weighted 0-100 score: 40% price, 30% temperature, 30% duration."""
    return (
        price_score(price, budget) * PRICE_WEIGHT
        + weather_score(temp, pref) * TEMPERATURE_WEIGHT
        + duration_score(duration_minutes, shortest_minutes) * DURATION_WEIGHT
    )
