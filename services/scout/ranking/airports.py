"""
Airport lookup for weather stations.

A station is matched to an airport either by an IATA code appearing in its id
or name (ASOS stations are often named after the field they sit on), or by
great-circle distance to the closest known airport within a radius.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from services.scout.weather.models import Station

EARTH_RADIUS_KM = 6371.0
DEFAULT_RADIUS_KM = 150.0


@dataclass(frozen=True)
class Airport:
    code: str
    name: str
    lat: float
    lon: float


MAJOR_AIRPORTS: tuple[Airport, ...] = (
    # West Coast
    Airport("SFO", "San Francisco, CA", 37.6213, -122.379),
    Airport("LAX", "Los Angeles, CA", 33.9425, -118.4081),
    Airport("SEA", "Seattle, WA", 47.4502, -122.3088),
    Airport("PDX", "Portland, OR", 45.5898, -122.5951),
    Airport("SAN", "San Diego, CA", 32.7338, -117.1933),
    # East Coast
    Airport("JFK", "New York, NY (JFK)", 40.6413, -73.7781),
    Airport("LGA", "New York, NY (LGA)", 40.7769, -73.874),
    Airport("EWR", "Newark, NJ", 40.6895, -74.1745),
    Airport("BOS", "Boston, MA", 42.3656, -71.0096),
    Airport("MIA", "Miami, FL", 25.7959, -80.287),
    Airport("ATL", "Atlanta, GA", 33.6407, -84.4277),
    # Central
    Airport("ORD", "Chicago, IL", 41.9742, -87.9073),
    Airport("DFW", "Dallas, TX", 32.8998, -97.0403),
    Airport("DEN", "Denver, CO", 39.8561, -104.6737),
    Airport("IAH", "Houston, TX", 29.9902, -95.3368),
    Airport("MSP", "Minneapolis, MN", 44.8848, -93.2223),
)

AIRPORTS_BY_CODE: dict[str, Airport] = {a.code: a for a in MAJOR_AIRPORTS}


def get_airport(code: str | None) -> Airport | None:
    if not code:
        return None
    return AIRPORTS_BY_CODE.get(code.strip().upper())


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def iata_from_station(station: Station) -> str | None:
    """Known airport code contained in the station's name or id, if any."""
    haystack = f"{station.name or ''} {station.id or ''}".upper()
    for airport in MAJOR_AIRPORTS:
        if airport.code in haystack:
            return airport.code
    return None


def nearest_airport(
    lat: float,
    lon: float,
    max_km: float = DEFAULT_RADIUS_KM,
) -> tuple[Airport, float] | None:
    """Closest known airport within max_km, with its distance."""
    best: tuple[Airport, float] | None = None
    for airport in MAJOR_AIRPORTS:
        distance = haversine_km(lat, lon, airport.lat, airport.lon)
        if distance <= max_km and (best is None or distance < best[1]):
            best = (airport, distance)
    return best


def resolve_airport(station: Station, max_km: float = DEFAULT_RADIUS_KM) -> Airport | None:
    code = iata_from_station(station)
    if code:
        return AIRPORTS_BY_CODE[code]
    if station.lat is None or station.lon is None:
        return None
    found = nearest_airport(station.lat, station.lon, max_km)
    return found[0] if found else None


def filter_stations_near(
    stations: Iterable[Station],
    codes: Iterable[str | None],
    max_km: float = DEFAULT_RADIUS_KM,
) -> list[Station]:
    """
    Stations within max_km of any of the given airports.

    Unknown or empty codes are ignored; if none of the codes is known the
    stations are returned unfiltered. Stations without coordinates never
    match a proximity filter.
    """
    airports = [a for a in (get_airport(c) for c in codes) if a is not None]
    stations = list(stations)
    if not airports:
        return stations

    out = []
    for station in stations:
        if station.lat is None or station.lon is None:
            continue
        if any(haversine_km(a.lat, a.lon, station.lat, station.lon) <= max_km for a in airports):
            out.append(station)
    return out
