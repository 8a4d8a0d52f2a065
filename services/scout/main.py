"""
Scout FastAPI service: weather stations, flight search and destination ranking.

Entrypoint: uvicorn services.scout.main:app --host 0.0.0.0 --port 8000
"""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from services.scout.cache import ResponseCache
from services.scout.config import settings
from services.scout.errors import (
    QueryValidationError,
    UpstreamError,
    UpstreamHttpError,
    UpstreamLogicalError,
    UpstreamParseError,
)
from services.scout.flights import FlightSearchClient
from services.scout.middleware.cors import setup_cors
from services.scout.middleware.sentry import setup_sentry
from services.scout.ranking import DestinationRanker
from services.scout.routers import destinations, flights, health, stations, weather
from services.scout.weather import SlidingWindowLimiter, StationClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    setup_sentry()

    cache = ResponseCache(max_entries=settings.response_cache_max_entries)
    limiter = SlidingWindowLimiter(
        limit=settings.weather_rate_limit_requests,
        window_ms=settings.weather_rate_limit_window_ms,
    )
    station_client = StationClient(
        base_url=settings.windborne_base,
        limiter=limiter,
        timeout_s=settings.upstream_timeout_s,
    )
    flight_client = FlightSearchClient(
        api_key=settings.serpapi_key,
        endpoint=settings.serpapi_flights_endpoint,
        hl=settings.serpapi_default_hl,
        gl=settings.serpapi_default_gl,
        currency=settings.serpapi_default_currency,
        timeout_s=settings.upstream_timeout_s,
    )
    if not settings.serpapi_key:
        logger.warning("SERPAPI_KEY is not set; /flights and /destinations will fail")

    app.state.settings = settings
    app.state.cache = cache
    app.state.limiter = limiter
    app.state.station_client = station_client
    app.state.flight_client = flight_client
    app.state.ranker = DestinationRanker(
        cache=cache,
        station_client=station_client,
        flight_client=flight_client,
        radius_km=settings.airport_search_radius_km,
        stations_ttl_ms=settings.stations_cache_ttl_ms,
        weather_ttl_ms=settings.weather_cache_ttl_ms,
        flights_ttl_ms=settings.flights_cache_ttl_ms,
    )

    yield

    cache.clear()


app = FastAPI(
    title="Scout API",
    version=settings.app_version,
    docs_url="/docs" if settings.environment == "development" else None,
    redoc_url=None,
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(stations.router)
app.include_router(weather.router)
app.include_router(flights.router)
app.include_router(destinations.router)

setup_cors(app)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next) -> Response:
    request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# -- Exception Handlers --

_UPSTREAM_CODES = {
    UpstreamHttpError: "UPSTREAM_HTTP_ERROR",
    UpstreamParseError: "UPSTREAM_PARSE_ERROR",
    UpstreamLogicalError: "UPSTREAM_LOGICAL_ERROR",
}


def _error_body(request: Request, message: str, code: str) -> dict:
    return {
        "error": message,
        "code": code,
        "requestId": getattr(request.state, "request_id", str(uuid.uuid4())),
    }


@app.exception_handler(QueryValidationError)
async def query_validation_handler(request: Request, exc: QueryValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content=_error_body(request, str(exc), "VALIDATION_ERROR"))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        loc = first.get("loc") or ()
        message = first.get("msg", "Invalid value")
        if loc:
            message = f"{loc[-1]}: {message}"
    else:
        message = "Invalid request."
    return JSONResponse(status_code=400, content=_error_body(request, message, "VALIDATION_ERROR"))


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    code = _UPSTREAM_CODES.get(type(exc), "UPSTREAM_ERROR")
    logger.error(
        "Upstream failure on %s (%s): %s",
        request.url.path,
        exc.provider or "unknown provider",
        exc,
    )
    return JSONResponse(status_code=500, content=_error_body(request, str(exc), code))


@app.exception_handler(404)
async def not_found_handler(request: Request, exc) -> JSONResponse:
    return JSONResponse(status_code=404, content=_error_body(request, "Resource not found.", "NOT_FOUND"))


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content=_error_body(request, "An unexpected error occurred.", "INTERNAL_ERROR"),
    )
