"""
Cached upstream lookups shared by the routers and the destination ranker.

Each helper stores the JSON wire shape under a fixed key format so the HTTP
endpoints and the ranker hit the same entries:

  stations:v1               list of Station dicts
  wx:{station_id}           HistoryReport dict
  flights:{json(params)}    FlightSearchResult dict
"""

from __future__ import annotations

import json
from typing import Any

from services.scout.cache import ResponseCache
from services.scout.flights import FlightSearchClient, FlightSearchParams
from services.scout.weather import StationClient

STATIONS_KEY = "stations:v1"


def history_key(station_id: str) -> str:
    return f"wx:{station_id}"


def flights_key(params: FlightSearchParams) -> str:
    return "flights:" + json.dumps(params.to_dict(), sort_keys=True, separators=(",", ":"))


async def cached_stations(
    cache: ResponseCache,
    client: StationClient,
    ttl_ms: int,
) -> list[dict[str, Any]]:
    async def _fetch() -> list[dict[str, Any]]:
        return [s.to_dict() for s in await client.fetch_stations()]

    return await cache.get_or_fetch(STATIONS_KEY, ttl_ms, _fetch)


async def cached_history(
    cache: ResponseCache,
    client: StationClient,
    station_id: str,
    ttl_ms: int,
) -> dict[str, Any]:
    async def _fetch() -> dict[str, Any]:
        return (await client.fetch_history_report(station_id)).to_dict()

    return await cache.get_or_fetch(history_key(station_id), ttl_ms, _fetch)


async def cached_flights(
    cache: ResponseCache,
    client: FlightSearchClient,
    params: FlightSearchParams,
    ttl_ms: int,
) -> dict[str, Any]:
    async def _fetch() -> dict[str, Any]:
        return (await client.search(params)).to_dict()

    return await cache.get_or_fetch(flights_key(params), ttl_ms, _fetch)
