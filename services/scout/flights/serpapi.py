"""
FlightSearchClient: SerpApi Google Flights engine.

Request:
  GET {endpoint}?engine=google_flights&api_key=...&departure_id=SFO&arrival_id=LAX
      &outbound_date=2025-07-10&hl=en&gl=us&currency=USD&type=2&sort_by=2

  type:     1 = round trip (needs return_date), 2 = one way
  sort_by:  2 = price (default)
  stops:    forwarded as-is when set

Response (abridged):
  {
    "best_flights":  [ {"flights": [leg, ...], "layovers": [...], "total_duration": 335,
                        "price": 180, "flight_link": "..."} ],
    "other_flights": [ ... ],
    "error": "..."            # only on failure, sometimes with a 200 status
  }

  leg = {"departure_airport": {"id", "time"}, "arrival_airport": {"id", "time"},
         "duration": 95, "airline": "United"}

Offers from every list are merged, normalized to FlightQuote and sorted by
price (stable, so ties keep provider order). Offers without a usable price
are dropped.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any

import httpx

from services.scout.errors import UpstreamHttpError, UpstreamLogicalError
from services.scout.flights.models import (
    TRIP_ROUND_TRIP,
    FlightQuote,
    FlightSearchParams,
    FlightSearchResult,
)

logger = logging.getLogger(__name__)

_PROVIDER = "serpapi"

# Result lists in merge order; "flights" is the unnamed fallback some responses use.
OFFER_LISTS = ("best_flights", "other_flights", "flights")

MULTIPLE_AIRLINES = "Multiple airlines"

TRIP_TYPE_CODES = {"round-trip": "1", "one-way": "2"}

PRICE_RE = re.compile(r"[^0-9.]")


def _positive(value: float | None) -> float | None:
    if value is None or not math.isfinite(value) or value <= 0:
        return None
    return value


def extract_price(raw: Any) -> float | None:
    """Price from a number, a currency string ("$1,234"), or {value}/{price}."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return _positive(float(raw))
    if isinstance(raw, str):
        cleaned = PRICE_RE.sub("", raw)
        try:
            return _positive(float(cleaned))
        except ValueError:
            return None
    if isinstance(raw, dict):
        for key in ("value", "price"):
            nested = raw.get(key)
            if isinstance(nested, (int, float)) and not isinstance(nested, bool):
                price = _positive(float(nested))
                if price is not None:
                    return price
    return None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number >= 0 else None


def _legs(offer: dict[str, Any]) -> list[dict[str, Any]]:
    legs = offer.get("flights")
    if not isinstance(legs, list):
        return []
    return [leg for leg in legs if isinstance(leg, dict)]


def _airline(offer: dict[str, Any], legs: list[dict[str, Any]]) -> str | None:
    carriers = []
    for leg in legs:
        name = leg.get("airline")
        if name and name not in carriers:
            carriers.append(name)
    if len(carriers) == 1:
        return carriers[0]
    if len(carriers) > 1:
        return MULTIPLE_AIRLINES
    return offer.get("airline")


def _duration_minutes(offer: dict[str, Any], legs: list[dict[str, Any]]) -> int | None:
    total = _as_int(offer.get("total_duration"))
    if total is not None:
        return total
    leg_durations = [_as_int(leg.get("duration")) for leg in legs]
    leg_durations = [d for d in leg_durations if d is not None]
    if leg_durations:
        return sum(leg_durations)
    return _as_int(offer.get("duration"))


def _stops(offer: dict[str, Any], legs: list[dict[str, Any]]) -> int | None:
    layovers = offer.get("layovers")
    if isinstance(layovers, list):
        return len(layovers)
    if legs:
        return len(legs) - 1
    return _as_int(offer.get("stops"))


def _airport_time(leg: dict[str, Any], key: str) -> str | None:
    airport = leg.get(key)
    if isinstance(airport, dict):
        return airport.get("time")
    return None


def normalize_offer(offer: dict[str, Any], currency: str) -> FlightQuote | None:
    """Normalize one provider offer. None if it has no usable price."""
    price = extract_price(offer.get("price"))
    if price is None:
        return None
    legs = _legs(offer)
    return FlightQuote(
        price=price,
        currency=currency,
        airline=_airline(offer, legs),
        duration_minutes=_duration_minutes(offer, legs),
        departure_time=_airport_time(legs[0], "departure_airport") if legs else None,
        arrival_time=_airport_time(legs[-1], "arrival_airport") if legs else None,
        stops=_stops(offer, legs),
        booking_url=offer.get("flight_link"),
    )


def normalize_response(data: dict[str, Any], currency: str) -> FlightSearchResult:
    quotes: list[FlightQuote] = []
    dropped = 0
    for list_name in OFFER_LISTS:
        offers = data.get(list_name)
        if not isinstance(offers, list):
            continue
        for offer in offers:
            quote = normalize_offer(offer, currency) if isinstance(offer, dict) else None
            if quote is None:
                dropped += 1
                continue
            quotes.append(quote)

    if dropped:
        logger.debug("Dropped %d flight offers without a usable price", dropped)

    quotes.sort(key=lambda q: q.price)
    return FlightSearchResult(cheapest=quotes[0] if quotes else None, all=quotes)


class FlightSearchClient:
    """
    Usage:
        client = FlightSearchClient(api_key=settings.serpapi_key)
        result = await client.search(FlightSearchParams("SFO", "LAX", "2025-07-10"))
        result.cheapest.price
    """

    def __init__(
        self,
        api_key: str,
        endpoint: str = "https://serpapi.com/search.json",
        hl: str = "en",
        gl: str = "us",
        currency: str = "USD",
        timeout_s: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._endpoint = endpoint
        self._hl = hl
        self._gl = gl
        self.currency = currency
        self._timeout_s = timeout_s
        self._http = http_client

    def build_query(self, params: FlightSearchParams) -> dict[str, str]:
        query = {
            "engine": "google_flights",
            "api_key": self._api_key,
            "departure_id": params.origin,
            "arrival_id": params.destination,
            "outbound_date": params.outbound_date,
            "hl": self._hl,
            "gl": self._gl,
            "currency": self.currency,
        }

        trip_type = params.trip_type
        if trip_type == TRIP_ROUND_TRIP and not params.return_date:
            logger.info(
                "Round trip %s->%s requested without return date, searching one way",
                params.origin,
                params.destination,
            )
            trip_type = "one-way"
        query["type"] = TRIP_TYPE_CODES.get(trip_type, TRIP_TYPE_CODES["one-way"])
        if trip_type == TRIP_ROUND_TRIP:
            query["return_date"] = params.return_date

        query["sort_by"] = str(params.sort_by)
        if params.max_stops is not None:
            query["stops"] = str(params.max_stops)
        if params.deep_search:
            query["deep_search"] = "true"
        return query

    async def search(self, params: FlightSearchParams) -> FlightSearchResult:
        if not self._api_key:
            logger.warning("SERPAPI_KEY not set; cannot search %s->%s", params.origin, params.destination)
            raise UpstreamLogicalError("Flight search is not configured", provider=_PROVIDER)

        query = self.build_query(params)
        try:
            if self._http is not None:
                resp = await self._http.get(self._endpoint, params=query)
            else:
                async with httpx.AsyncClient(timeout=self._timeout_s) as client:
                    resp = await client.get(self._endpoint, params=query)
        except httpx.TimeoutException as exc:
            raise UpstreamHttpError("SerpApi request timed out", provider=_PROVIDER) from exc
        except httpx.RequestError as exc:
            raise UpstreamHttpError(f"SerpApi request failed: {exc}", provider=_PROVIDER) from exc

        if not resp.is_success:
            message = f"SerpApi error: {resp.status_code}"
            try:
                body = resp.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and body.get("error"):
                message = str(body["error"])
            elif resp.text:
                message = resp.text[:200]
            logger.warning("SerpApi returned %d: %s", resp.status_code, message)
            raise UpstreamHttpError(message, status_code=resp.status_code, provider=_PROVIDER)

        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamLogicalError("SerpApi returned a non-JSON body", provider=_PROVIDER) from exc

        if not isinstance(data, dict):
            raise UpstreamLogicalError("SerpApi returned an unexpected body", provider=_PROVIDER)
        if data.get("error"):
            logger.warning("SerpApi reported error for %s->%s: %s", params.origin, params.destination, data["error"])
            raise UpstreamLogicalError(str(data["error"]), provider=_PROVIDER)

        result = normalize_response(data, self.currency)
        logger.info(
            "Flight search %s->%s on %s: %d offers, cheapest %s",
            params.origin,
            params.destination,
            params.outbound_date,
            len(result.all),
            result.cheapest.price if result.cheapest else None,
        )
        return result
