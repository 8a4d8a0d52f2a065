"""
Flight search endpoint: GET /flights

  /flights?from=SFO&to=LAX&outbound_date=2025-07-10
          [&return_date=...&type=one-way|round-trip&stops=N&sort_by=N&deep_search=true]

Returns {cheapest, all, searchParams}. Results are cached per parameter set.
"""

from datetime import date
from typing import Literal

from fastapi import APIRouter, Query, Request

from services.scout.flights import FlightSearchParams
from services.scout.flights.models import SORT_BY_PRICE, TRIP_ONE_WAY
from services.scout.lookups import cached_flights

router = APIRouter(tags=["flights"])

IATA_PATTERN = r"^[A-Za-z]{3}$"


@router.get("/flights")
async def search_flights(
    request: Request,
    origin: str = Query(..., alias="from", pattern=IATA_PATTERN, description="Origin IATA code"),
    destination: str = Query(..., alias="to", pattern=IATA_PATTERN, description="Destination IATA code"),
    outbound_date: date = Query(...),
    return_date: date | None = Query(None, description="Round trips only"),
    trip: Literal["one-way", "round-trip"] = Query(TRIP_ONE_WAY, alias="type"),
    stops: int | None = Query(None, ge=0, description="Provider stops filter"),
    sort_by: int = Query(SORT_BY_PRICE, ge=1, description="Provider sort code, 2 = price"),
    deep_search: bool = Query(False),
) -> dict:
    params = FlightSearchParams(
        origin=origin.upper(),
        destination=destination.upper(),
        outbound_date=outbound_date.isoformat(),
        return_date=return_date.isoformat() if return_date else None,
        trip_type=trip,
        sort_by=sort_by,
        max_stops=stops,
        deep_search=deep_search,
    )

    state = request.app.state
    result = await cached_flights(
        state.cache,
        state.flight_client,
        params,
        state.settings.flights_cache_ttl_ms,
    )
    return {**result, "searchParams": params.to_dict()}
