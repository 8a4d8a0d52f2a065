"""
StationClient: rate-limited WindBorne weather-station client.

Endpoints used:
  GET {base}/stations                              -> [ {station_id, station_name, latitude, longitude, ...} ]
  GET {base}/historical_weather?station={id}       -> {"points": [ {timestamp, temperature, ...} ]}

Every call goes through the shared SlidingWindowLimiter (20 req / 60 s) and
the lenient JSON decoder, because the provider sometimes returns fragments.

Failure policy:
  - non-2xx or transport failure  -> UpstreamHttpError (status_code set for non-2xx)
  - empty / unrepairable body     -> UpstreamParseError
  - a single bad station entry    -> dropped, listing continues
  - history in an unknown shape   -> empty history (missing data is normal)

History is normalized to Celsius (units.normalize_points) and then cleaned
(cleaning.clean). The share of raw points that survive is the data quality.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from services.scout.errors import MalformedStationData, UpstreamHttpError
from services.scout.weather.cleaning import clean, data_quality
from services.scout.weather.lenient_json import lenient_decode
from services.scout.weather.models import HistoryReport, Station, WeatherObservation
from services.scout.weather.rate_limit import SlidingWindowLimiter
from services.scout.weather.units import normalize_points, to_reading

logger = logging.getLogger(__name__)

_PROVIDER = "windborne"
_STATIONS_PATH = "/stations"
_HISTORY_PATH = "/historical_weather"


def _parse_station(raw: Any) -> Station:
    """Rename provider station fields. Raises MalformedStationData if unusable."""
    if not isinstance(raw, dict):
        raise MalformedStationData(f"station entry is {type(raw).__name__}, not an object")
    station_id = raw.get("station_id", raw.get("id"))
    if station_id is None or str(station_id).strip() == "":
        raise MalformedStationData("station entry has no station_id")
    name = raw.get("station_name", raw.get("name"))
    return Station(
        id=str(station_id),
        name=str(name) if name is not None else None,
        lat=to_reading(raw.get("latitude", raw.get("lat"))),
        lon=to_reading(raw.get("longitude", raw.get("lon"))),
    )


def _extract_points(payload: Any) -> list[Any] | None:
    """History comes back as a bare array or {"points": [...]}. None otherwise."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("points"), list):
        return payload["points"]
    return None


class StationClient:
    """
    Usage:
        limiter = SlidingWindowLimiter(limit=20, window_ms=60_000)
        client = StationClient(base_url=settings.windborne_base, limiter=limiter)
        stations = await client.fetch_stations()
        history = await client.fetch_history(stations[0].id)
    """

    def __init__(
        self,
        base_url: str,
        limiter: SlidingWindowLimiter,
        timeout_s: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            base_url:    WindBorne API root (WINDBORNE_BASE env var).
            limiter:     Shared limiter; every outbound call acquires a slot.
            timeout_s:   Per-request timeout when no http_client is injected.
            http_client: Optional long-lived client (tests inject a MockTransport).
        """
        self._base_url = base_url.rstrip("/")
        self._limiter = limiter
        self._timeout_s = timeout_s
        self._http = http_client

    async def _get_json(self, path: str, params: dict[str, str] | None = None) -> Any:
        await self._limiter.acquire()

        url = f"{self._base_url}{path}"
        try:
            if self._http is not None:
                resp = await self._http.get(url, params=params)
            else:
                async with httpx.AsyncClient(timeout=self._timeout_s) as client:
                    resp = await client.get(url, params=params)
        except httpx.TimeoutException as exc:
            raise UpstreamHttpError(f"WindBorne request timed out: {path}", provider=_PROVIDER) from exc
        except httpx.RequestError as exc:
            raise UpstreamHttpError(f"WindBorne fetch error: {exc}", provider=_PROVIDER) from exc

        if not resp.is_success:
            logger.warning("WindBorne returned %d for %s", resp.status_code, path)
            raise UpstreamHttpError(
                f"WindBorne {resp.status_code}",
                status_code=resp.status_code,
                provider=_PROVIDER,
            )

        return lenient_decode(resp.text, source=path).value

    async def fetch_stations(self) -> list[Station]:
        payload = await self._get_json(_STATIONS_PATH)
        if isinstance(payload, dict) and isinstance(payload.get("stations"), list):
            payload = payload["stations"]
        if not isinstance(payload, list):
            logger.warning("Unexpected station list shape: %s", type(payload).__name__)
            return []

        stations: list[Station] = []
        for raw in payload:
            try:
                stations.append(_parse_station(raw))
            except MalformedStationData as exc:
                logger.debug("Dropping station entry: %s", exc)
        logger.info("Fetched %d stations (%d dropped)", len(stations), len(payload) - len(stations))
        return stations

    async def fetch_history_report(self, station_id: str) -> HistoryReport:
        payload = await self._get_json(_HISTORY_PATH, params={"station": station_id})
        points = _extract_points(payload)
        if points is None:
            logger.warning(
                "Unexpected history shape for station %s: %s",
                station_id,
                type(payload).__name__,
            )
            return HistoryReport(station_id=station_id)

        raw_count = len(points)
        converted = normalize_points([p for p in points if isinstance(p, dict)], station_id=station_id)
        kept = clean(converted)
        observations = [
            WeatherObservation(timestamp=p["timestamp"], temperature_c=to_reading(p["temperature"]))
            for p in kept
        ]
        return HistoryReport(
            station_id=station_id,
            observations=observations,
            raw_count=raw_count,
            data_quality=data_quality(raw_count, len(observations)),
        )

    async def fetch_history(self, station_id: str) -> list[WeatherObservation]:
        report = await self.fetch_history_report(station_id)
        return report.observations
