"""
Weather station package.

WindBorne station client with a sliding-window rate limiter, lenient JSON
decoding, Fahrenheit detection and observation cleaning.
"""

from services.scout.weather.models import HistoryReport, Station, WeatherObservation
from services.scout.weather.rate_limit import SlidingWindowLimiter
from services.scout.weather.service import StationClient

__all__ = [
    "HistoryReport",
    "SlidingWindowLimiter",
    "Station",
    "StationClient",
    "WeatherObservation",
]
