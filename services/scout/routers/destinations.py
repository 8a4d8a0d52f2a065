"""
Destination ranking endpoint: GET /destinations

  /destinations?origin=SFO&outbound_date=2025-07-10&budget=200&temp_min=15&temp_max=30
               &station=KLAX&station=KSEA       (or &destination=LAX)
               [&return_date=...&type=...&nonstop=true&top=3]

Each candidate station is matched to an airport, scored on average recent
temperature, fare and flight duration, and returned best first.
"""

from datetime import date
from typing import Literal

from fastapi import APIRouter, Query, Request

from services.scout.errors import QueryValidationError
from services.scout.flights.models import TRIP_ONE_WAY
from services.scout.ranking import RankingRequest
from services.scout.routers.flights import IATA_PATTERN
from services.scout.scoring import TemperaturePreference

router = APIRouter(tags=["destinations"])

MAX_STATIONS = 10


@router.get("/destinations")
async def rank_destinations(
    request: Request,
    origin: str = Query(..., pattern=IATA_PATTERN, description="Origin IATA code"),
    outbound_date: date = Query(...),
    budget: float = Query(..., gt=0, allow_inf_nan=False, description="Target fare"),
    temp_min: float = Query(..., allow_inf_nan=False, description="Preferred minimum, Celsius"),
    temp_max: float = Query(..., allow_inf_nan=False, description="Preferred maximum, Celsius"),
    station: list[str] | None = Query(None, description="Candidate station ids"),
    destination: str | None = Query(None, pattern=IATA_PATTERN, description="Rank stations near this airport"),
    return_date: date | None = Query(None),
    trip: Literal["one-way", "round-trip"] = Query(TRIP_ONE_WAY, alias="type"),
    nonstop: bool = Query(False),
    top: int | None = Query(None, ge=1, description="Offers kept per destination"),
) -> dict:
    if temp_min > temp_max:
        raise QueryValidationError("temp_min must not exceed temp_max")

    station_ids = [s.strip() for s in station or [] if s.strip()]
    if not station_ids and not destination:
        raise QueryValidationError("Provide at least one station or a destination")
    if len(station_ids) > MAX_STATIONS:
        raise QueryValidationError(f"At most {MAX_STATIONS} stations per request")

    state = request.app.state
    ranking = RankingRequest(
        origin=origin.upper(),
        outbound_date=outbound_date.isoformat(),
        budget=budget,
        preference=TemperaturePreference(min=temp_min, max=temp_max),
        station_ids=station_ids,
        destination=destination.upper() if destination else None,
        return_date=return_date.isoformat() if return_date else None,
        trip_type=trip,
        nonstop=nonstop,
        offers_per_station=top or state.settings.destination_offers_per_station,
        max_stations=MAX_STATIONS,
    )

    candidates = await state.ranker.rank(ranking)
    return {
        "results": [c.to_dict() for c in candidates],
        "count": len(candidates),
    }
