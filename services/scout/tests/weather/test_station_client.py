"""
Tests for StationClient against a MockTransport WindBorne.

Coverage targets:
  - station listing: field renames, wrapped/bare shapes, bad entries dropped
  - history: Fahrenheit conversion, cleaning, data quality, fragment repair
  - error mapping: non-2xx, transport failure, timeout, empty/invalid body
  - every call goes through the limiter
"""

from __future__ import annotations

import httpx
import pytest

from services.scout.errors import UpstreamHttpError, UpstreamParseError
from services.scout.tests.conftest import WINDBORNE_BASE, make_points, make_station
from services.scout.weather import SlidingWindowLimiter, StationClient


# ---------------------------------------------------------------------------
# Stations
# ---------------------------------------------------------------------------

class TestFetchStations:
    async def test_renames_fields(self, station_client):
        stations = await station_client.fetch_stations()
        klax = stations[0]
        assert klax.id == "KLAX"
        assert klax.name == "Los Angeles Intl"
        assert klax.lat == pytest.approx(33.94)
        assert klax.lon == pytest.approx(-118.41)

    async def test_wrapped_listing(self, station_client, upstream):
        upstream.stations = {"stations": [make_station("KSFO", "San Francisco", 37.6, -122.4)]}
        stations = await station_client.fetch_stations()
        assert [s.id for s in stations] == ["KSFO"]

    async def test_malformed_entries_dropped(self, station_client, upstream):
        upstream.stations = [
            make_station("KSFO", "San Francisco", 37.6, -122.4),
            {"station_name": "no id"},
            "garbage",
            {"station_id": "  "},
            make_station("KDEN"),
        ]
        stations = await station_client.fetch_stations()
        assert [s.id for s in stations] == ["KSFO", "KDEN"]
        assert stations[1].lat is None

    async def test_unexpected_shape_is_empty(self, station_client, upstream):
        upstream.stations = {"status": "ok"}
        assert await station_client.fetch_stations() == []

    async def test_request_path(self, station_client, upstream):
        await station_client.fetch_stations()
        assert str(upstream.requests[0].url) == f"{WINDBORNE_BASE}/stations"


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

class TestFetchHistory:
    async def test_celsius_history(self, station_client, upstream):
        upstream.history["KLAX"] = {"points": make_points([15, 18, 20, 22])}
        report = await station_client.fetch_history_report("KLAX")
        assert [o.temperature_c for o in report.observations] == [15, 18, 20, 22]
        assert report.raw_count == 4
        assert report.data_quality == 100

    async def test_station_param_sent(self, station_client, upstream):
        await station_client.fetch_history("KSEA")
        request = upstream.calls_to("/historical_weather")[0]
        assert request.url.params["station"] == "KSEA"

    async def test_fahrenheit_converted(self, station_client, upstream):
        upstream.history["KLAX"] = {"points": make_points([68, 70, 72, 75, 80])}
        observations = await station_client.fetch_history("KLAX")
        assert observations[1].temperature_c == pytest.approx(21.11, abs=0.01)

    async def test_corrupt_points_lower_quality(self, station_client, upstream):
        points = make_points([20, 21, 22, 999])
        points.append({"timestamp": "not-a-date", "temperature": 22.5})
        points.append({"timestamp": "2025-06-30T00:00:00Z", "temperature": None})
        upstream.history["KLAX"] = {"points": points}

        report = await station_client.fetch_history_report("KLAX")
        assert [o.temperature_c for o in report.observations] == [20, 21, 22]
        assert report.raw_count == 6
        assert report.data_quality == 50

    async def test_bare_array_history(self, station_client, upstream):
        upstream.history["KLAX"] = make_points([10, 11])
        assert len(await station_client.fetch_history("KLAX")) == 2

    async def test_fragment_repaired(self, station_client, upstream):
        upstream.history["KLAX"] = '"points": [{"timestamp":"2024-01-01T00:00:00Z","temperature":20}]'
        observations = await station_client.fetch_history("KLAX")
        assert len(observations) == 1
        assert observations[0].timestamp == "2024-01-01T00:00:00Z"
        assert observations[0].temperature_c == 20

    async def test_unknown_shape_is_empty(self, station_client, upstream):
        upstream.history["KLAX"] = {"readings": []}
        report = await station_client.fetch_history_report("KLAX")
        assert report.observations == []
        assert report.data_quality == 0

    async def test_no_points(self, station_client):
        report = await station_client.fetch_history_report("UNKNOWN")
        assert report.observations == []
        assert report.raw_count == 0


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class TestErrors:
    async def test_non_2xx(self, station_client, upstream):
        upstream.overrides["/stations"] = httpx.Response(503, text="busy")
        with pytest.raises(UpstreamHttpError) as exc_info:
            await station_client.fetch_stations()
        assert exc_info.value.status_code == 503
        assert exc_info.value.provider == "windborne"

    async def test_empty_body(self, station_client, upstream):
        upstream.overrides["/historical_weather"] = httpx.Response(200, text="")
        with pytest.raises(UpstreamParseError):
            await station_client.fetch_history("KLAX")

    async def test_invalid_body(self, station_client, upstream):
        upstream.overrides["/stations"] = httpx.Response(200, text="<html>oops</html>")
        with pytest.raises(UpstreamParseError):
            await station_client.fetch_stations()

    async def test_transport_failure(self, limiter):
        def fail(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(fail)) as http:
            client = StationClient(WINDBORNE_BASE, limiter, http_client=http)
            with pytest.raises(UpstreamHttpError) as exc_info:
                await client.fetch_stations()
        assert exc_info.value.status_code is None

    async def test_timeout(self, limiter):
        def slow(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(slow)) as http:
            client = StationClient(WINDBORNE_BASE, limiter, http_client=http)
            with pytest.raises(UpstreamHttpError, match="timed out"):
                await client.fetch_history("KLAX")


# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------

class TestLimiterIntegration:
    async def test_each_call_takes_a_slot(self, station_client, limiter):
        await station_client.fetch_stations()
        await station_client.fetch_history("KLAX")
        assert limiter.in_window == 2

    async def test_twenty_first_call_waits(self, http_client, fake_clock):
        limiter = SlidingWindowLimiter(limit=20, window_ms=60_000, clock=fake_clock, sleep=fake_clock.sleep)
        client = StationClient(WINDBORNE_BASE, limiter, http_client=http_client)
        for _ in range(21):
            await client.fetch_history("KLAX")
        assert fake_clock.sleeps == [60_000]
