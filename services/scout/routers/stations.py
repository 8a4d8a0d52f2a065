"""Station listing endpoint: GET /stations"""

from fastapi import APIRouter, Request

from services.scout.lookups import cached_stations

router = APIRouter(tags=["weather"])


@router.get("/stations")
async def list_stations(request: Request) -> list[dict]:
    state = request.app.state
    return await cached_stations(
        state.cache,
        state.station_client,
        state.settings.stations_cache_ttl_ms,
    )
