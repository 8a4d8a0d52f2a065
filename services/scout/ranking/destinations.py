"""
Destination ranking: joins station temperatures with flight quotes.

For each candidate station:
  1. resolve the nearest known airport (IATA match, else within 150 km)
  2. average the station's recent temperatures (7 days, else 30, else all)
  3. search flights origin -> airport and keep the cheapest few offers
  4. score every offer with scoring.composite

The shortest duration is taken across every offer being compared, so
duration scores are relative to the whole result set, not per station.

Failures are isolated per station: missing weather scores the temperature
factor 0 (data quality 0), a failed flight search drops that station, and
neither aborts the rest of the ranking.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from services.scout.cache import ResponseCache
from services.scout.errors import UpstreamError
from services.scout.flights import FlightQuote, FlightSearchClient, FlightSearchParams, FlightSearchResult
from services.scout.flights.models import TRIP_ONE_WAY
from services.scout.lookups import cached_flights, cached_history, cached_stations
from services.scout.ranking.airports import Airport, filter_stations_near, resolve_airport
from services.scout.scoring import TemperaturePreference, composite
from services.scout.weather import HistoryReport, Station, StationClient, WeatherObservation
from services.scout.weather.cleaning import parse_timestamp

logger = logging.getLogger(__name__)

LOOKBACK_WINDOWS = (timedelta(days=7), timedelta(days=30))

# SerpApi "stops" filter: 1 = nonstop only
NONSTOP_FILTER = 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def average_temperature(
    observations: list[WeatherObservation],
    now: datetime | None = None,
) -> float | None:
    """Mean temperature over the last 7 days, falling back to 30 days, then everything."""
    if not observations:
        return None
    now = now or _utcnow()

    dated: list[tuple[datetime, float]] = []
    for obs in observations:
        ts = parse_timestamp(obs.timestamp)
        if ts is None:
            continue
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        dated.append((ts, obs.temperature_c))

    for window in LOOKBACK_WINDOWS:
        recent = [t for ts, t in dated if now - window <= ts <= now]
        if recent:
            return sum(recent) / len(recent)

    temps = [o.temperature_c for o in observations]
    return sum(temps) / len(temps)


@dataclass(frozen=True)
class RankingRequest:
    origin: str
    outbound_date: str
    budget: float
    preference: TemperaturePreference
    station_ids: list[str] = field(default_factory=list)
    destination: str | None = None
    return_date: str | None = None
    trip_type: str = TRIP_ONE_WAY
    nonstop: bool = False
    offers_per_station: int = 3
    max_stations: int = 10


@dataclass(frozen=True)
class DestinationCandidate:
    station_id: str
    station_name: str | None
    airport_code: str
    destination: str
    avg_temp_c: float | None
    data_quality: int
    flight: FlightQuote
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "stationId": self.station_id,
            "stationName": self.station_name,
            "airportCode": self.airport_code,
            "destination": self.destination,
            "avgTemp": self.avg_temp_c,
            "dataQuality": self.data_quality,
            "lowestPrice": self.flight.price,
            "currency": self.flight.currency,
            "flight": self.flight.to_dict(),
            "score": self.score,
        }


@dataclass
class _StationRow:
    station: Station
    airport: Airport
    avg_temp_c: float | None
    data_quality: int
    quotes: list[FlightQuote]


class DestinationRanker:
    """
    Usage:
        ranker = DestinationRanker(cache, station_client, flight_client)
        rows = await ranker.rank(RankingRequest(
            origin="SFO", outbound_date="2025-07-10", budget=200,
            preference=TemperaturePreference(15, 30), destination="LAX",
        ))
    """

    def __init__(
        self,
        cache: ResponseCache,
        station_client: StationClient,
        flight_client: FlightSearchClient,
        radius_km: float = 150.0,
        stations_ttl_ms: int = 300_000,
        weather_ttl_ms: int = 120_000,
        flights_ttl_ms: int = 900_000,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._cache = cache
        self._stations = station_client
        self._flights = flight_client
        self._radius_km = radius_km
        self._stations_ttl_ms = stations_ttl_ms
        self._weather_ttl_ms = weather_ttl_ms
        self._flights_ttl_ms = flights_ttl_ms
        self._clock = clock

    async def rank(self, req: RankingRequest) -> list[DestinationCandidate]:
        stations = await self._candidate_stations(req)
        rows = await asyncio.gather(*(self._evaluate(req, s) for s in stations))
        rows = [r for r in rows if r is not None]

        durations = [
            q.duration_minutes
            for r in rows
            for q in r.quotes
            if q.duration_minutes is not None and q.duration_minutes > 0
        ]
        shortest = min(durations) if durations else math.nan

        candidates = []
        for row in rows:
            temp = row.avg_temp_c if row.avg_temp_c is not None else math.nan
            for quote in row.quotes:
                duration = quote.duration_minutes if quote.duration_minutes is not None else math.nan
                candidates.append(
                    DestinationCandidate(
                        station_id=row.station.id,
                        station_name=row.station.name,
                        airport_code=row.airport.code,
                        destination=row.airport.name,
                        avg_temp_c=row.avg_temp_c,
                        data_quality=row.data_quality,
                        flight=quote,
                        score=composite(temp, quote.price, req.preference, req.budget, duration, shortest),
                    )
                )

        candidates.sort(key=lambda c: c.score, reverse=True)
        logger.info(
            "Ranked %d offers across %d destinations from %s",
            len(candidates),
            len(rows),
            req.origin,
        )
        return candidates

    async def _candidate_stations(self, req: RankingRequest) -> list[Station]:
        if not req.station_ids and not req.destination:
            return []

        try:
            listing = [Station.from_dict(s) for s in await cached_stations(
                self._cache, self._stations, self._stations_ttl_ms
            )]
        except UpstreamError as exc:
            logger.warning("Station list unavailable for ranking: %s", exc)
            listing = []

        if req.station_ids:
            by_id = {s.id: s for s in listing}
            # Unknown ids still get a chance through an IATA code in the id.
            return [by_id.get(sid, Station(id=sid)) for sid in req.station_ids][: req.max_stations]

        return filter_stations_near(listing, [req.destination], self._radius_km)[: req.max_stations]

    async def _evaluate(self, req: RankingRequest, station: Station) -> _StationRow | None:
        airport = resolve_airport(station, self._radius_km)
        if airport is None:
            logger.warning("No airport within %.0f km of station %s", self._radius_km, station.id)
            return None
        if airport.code == req.origin.upper():
            logger.debug("Station %s resolves to the origin airport, skipping", station.id)
            return None

        avg_temp, quality = await self._station_temperature(station.id)

        params = FlightSearchParams(
            origin=req.origin.upper(),
            destination=airport.code,
            outbound_date=req.outbound_date,
            return_date=req.return_date,
            trip_type=req.trip_type,
            max_stops=NONSTOP_FILTER if req.nonstop else None,
        )
        try:
            result = FlightSearchResult.from_dict(
                await cached_flights(self._cache, self._flights, params, self._flights_ttl_ms)
            )
        except UpstreamError as exc:
            logger.error("Flight search %s->%s failed: %s", params.origin, params.destination, exc)
            return None

        quotes = result.all[: req.offers_per_station]
        if not quotes:
            logger.info("No flights %s->%s on %s", params.origin, params.destination, req.outbound_date)
            return None

        return _StationRow(
            station=station,
            airport=airport,
            avg_temp_c=avg_temp,
            data_quality=quality,
            quotes=quotes,
        )

    async def _station_temperature(self, station_id: str) -> tuple[float | None, int]:
        try:
            report = HistoryReport.from_dict(
                await cached_history(self._cache, self._stations, station_id, self._weather_ttl_ms)
            )
        except UpstreamError as exc:
            logger.warning("History unavailable for station %s: %s", station_id, exc)
            return None, 0
        return average_temperature(report.observations, self._clock()), report.data_quality
