from services.scout.scoring.engine import (
    TemperaturePreference,
    composite,
    duration_rank_score,
    duration_score,
    price_score,
    weather_score,
)

__all__ = [
    "TemperaturePreference",
    "composite",
    "duration_rank_score",
    "duration_score",
    "price_score",
    "weather_score",
]
