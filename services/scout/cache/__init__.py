"""
Response cache package.

Process-lifetime, in-memory TTL cache shared by the stations, weather and
flights endpoints. One instance is created in the app lifespan.
"""

from services.scout.cache.response_cache import CacheEntry, ResponseCache

__all__ = ["CacheEntry", "ResponseCache"]
