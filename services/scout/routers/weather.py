"""
Station history endpoint: GET /weather?station={id}

Body is the cleaned observation list. The share of raw points that survived
cleaning goes in the X-Data-Quality header (0-100) so the body stays a plain
list.
"""

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from services.scout.lookups import cached_history

router = APIRouter(tags=["weather"])


@router.get("/weather")
async def station_weather(
    request: Request,
    station: str = Query(..., max_length=64, pattern=r"^\S+$", description="Station id from /stations"),
) -> JSONResponse:
    state = request.app.state
    report = await cached_history(
        state.cache,
        state.station_client,
        station,
        state.settings.weather_cache_ttl_ms,
    )
    return JSONResponse(
        content=report["observations"],
        headers={"X-Data-Quality": str(report["dataQuality"])},
    )
