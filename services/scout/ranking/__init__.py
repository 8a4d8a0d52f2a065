"""
Destination ranking package.

Airport resolution for weather stations and the ranker that scores
(temperature, price, duration) per destination offer.
"""

from services.scout.ranking.airports import MAJOR_AIRPORTS, Airport, resolve_airport
from services.scout.ranking.destinations import (
    DestinationCandidate,
    DestinationRanker,
    RankingRequest,
    average_temperature,
)

__all__ = [
    "MAJOR_AIRPORTS",
    "Airport",
    "DestinationCandidate",
    "DestinationRanker",
    "RankingRequest",
    "average_temperature",
    "resolve_airport",
]
