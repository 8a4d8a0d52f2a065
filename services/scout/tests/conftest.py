"""
Shared test fixtures for the Scout API test suite.

Provides:
- a fake WindBorne + SerpApi upstream served through httpx.MockTransport
- a fake clock whose sleep advances time (limiter tests never really wait)
- async FastAPI test client with isolated cache / limiter / clients per test
- factory functions for provider payloads (stations, history points, offers)
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

# Ensure test env vars before any app imports
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("SENTRY_DSN", "")
os.environ.setdefault("SERPAPI_KEY", "test-serpapi-key")

WINDBORNE_BASE = "https://windborne.test"
SERPAPI_ENDPOINT = "https://serpapi.test/search.json"
TEST_API_KEY = "test-serpapi-key"

# Ranking clock: history factories date their points just before this.
NOW = datetime(2025, 7, 1, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Fake time
# ---------------------------------------------------------------------------

class FakeClock:
    """Millisecond clock; sleep() records the wait and jumps time forward."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms

    async def sleep(self, ms: float) -> None:
        self.sleeps.append(ms)
        self.now += ms


# ---------------------------------------------------------------------------
# Fake upstream providers
# ---------------------------------------------------------------------------

def _response(body: Any) -> httpx.Response:
    if isinstance(body, httpx.Response):
        return body
    if isinstance(body, str):
        return httpx.Response(200, text=body)
    return httpx.Response(200, json=body)


class FakeUpstream:
    """
    Routes MockTransport requests to canned WindBorne / SerpApi payloads.

    stations    body for GET /stations
    history     station id -> body for GET /historical_weather
    flights     (from, to) -> SerpApi body
    overrides   url path -> response, checked before everything else
    """

    def __init__(self) -> None:
        self.stations: Any = [
            make_station("KLAX", "Los Angeles Intl", 33.94, -118.41),
            make_station("KSEA", "Seattle Tacoma", 47.45, -122.31),
            make_station("BUOY7", "Pacific buoy", 30.0, -140.0),
        ]
        self.history: dict[str, Any] = {}
        self.flights: dict[tuple[str, str], Any] = {}
        self.overrides: dict[str, Any] = {}
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in self.overrides:
            return _response(self.overrides[path])

        if request.url.host == "windborne.test":
            if path == "/stations":
                return _response(self.stations)
            if path == "/historical_weather":
                station = request.url.params.get("station")
                return _response(self.history.get(station, {"points": []}))

        if request.url.host == "serpapi.test":
            key = (request.url.params.get("departure_id"), request.url.params.get("arrival_id"))
            return _response(self.flights.get(key, {"best_flights": [], "other_flights": []}))

        return httpx.Response(404, text="not found")

    def calls_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
async def http_client(upstream):
    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler)) as client:
        yield client


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(fake_clock):
    from services.scout.weather import SlidingWindowLimiter

    return SlidingWindowLimiter(limit=20, window_ms=60_000, clock=fake_clock, sleep=fake_clock.sleep)


@pytest.fixture
def station_client(limiter, http_client):
    from services.scout.weather import StationClient

    return StationClient(base_url=WINDBORNE_BASE, limiter=limiter, http_client=http_client)


@pytest.fixture
def flight_client(http_client):
    from services.scout.flights import FlightSearchClient

    return FlightSearchClient(api_key=TEST_API_KEY, endpoint=SERPAPI_ENDPOINT, http_client=http_client)


@pytest.fixture
def response_cache(fake_clock):
    from services.scout.cache import ResponseCache

    return ResponseCache(clock=fake_clock)


@pytest.fixture
def ranker(response_cache, station_client, flight_client):
    from services.scout.ranking import DestinationRanker

    return DestinationRanker(
        cache=response_cache,
        station_client=station_client,
        flight_client=flight_client,
        clock=lambda: NOW,
    )


@pytest.fixture
async def app(response_cache, limiter, station_client, flight_client, ranker):
    """Create a test FastAPI app with fake upstreams injected."""
    from services.scout.config import settings
    from services.scout.main import app as _app

    _app.state.settings = settings
    _app.state.cache = response_cache
    _app.state.limiter = limiter
    _app.state.station_client = station_client
    _app.state.flight_client = flight_client
    _app.state.ranker = ranker
    return _app


@pytest.fixture
async def client(app):
    """Async HTTP client bound to the test app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Payload factories
# ---------------------------------------------------------------------------

def make_station(station_id: str, name: str | None = None, lat: float | None = None, lon: float | None = None) -> dict:
    """Station entry as WindBorne returns it."""
    return {
        "station_id": station_id,
        "station_name": name,
        "latitude": lat,
        "longitude": lon,
        "elevation": 10,
    }


def make_points(temps: list[Any], end: datetime = NOW, step: timedelta = timedelta(hours=6)) -> list[dict]:
    """History points ending one step before `end`, oldest first."""
    start = end - step * len(temps)
    return [
        {
            "timestamp": (start + step * i).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "temperature": t,
            "humidity": 50,
        }
        for i, t in enumerate(temps)
    ]


def make_leg(
    dep: str = "SFO",
    arr: str = "LAX",
    airline: str = "United",
    duration: int = 90,
    dep_time: str = "2025-07-10 08:00",
    arr_time: str = "2025-07-10 09:30",
) -> dict:
    return {
        "departure_airport": {"id": dep, "time": dep_time},
        "arrival_airport": {"id": arr, "time": arr_time},
        "duration": duration,
        "airline": airline,
    }


def make_offer(price: Any, total_duration: int | None = 90, legs: list[dict] | None = None, **extra: Any) -> dict:
    """SerpApi google_flights offer."""
    offer: dict[str, Any] = {
        "flights": legs if legs is not None else [make_leg()],
        "price": price,
        "flight_link": "https://www.google.com/travel/flights/booking?tfs=abc",
    }
    if total_duration is not None:
        offer["total_duration"] = total_duration
    offer.update(extra)
    return offer
