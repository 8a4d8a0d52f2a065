"""Normalized station-provider types and their JSON wire shapes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Station:
    id: str
    name: str | None = None
    lat: float | None = None
    lon: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "lat": self.lat, "lon": self.lon}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Station":
        return cls(
            id=str(data["id"]),
            name=data.get("name"),
            lat=data.get("lat"),
            lon=data.get("lon"),
        )


@dataclass(frozen=True)
class WeatherObservation:
    timestamp: str
    temperature_c: float

    def to_dict(self) -> dict[str, Any]:
        return {"timestamp": self.timestamp, "temperatureCelsius": self.temperature_c}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WeatherObservation":
        return cls(timestamp=data["timestamp"], temperature_c=float(data["temperatureCelsius"]))


@dataclass(frozen=True)
class HistoryReport:
    """Cleaned history for one station plus how much of the raw feed survived."""
    station_id: str
    observations: list[WeatherObservation] = field(default_factory=list)
    raw_count: int = 0
    data_quality: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "stationId": self.station_id,
            "observations": [o.to_dict() for o in self.observations],
            "rawCount": self.raw_count,
            "dataQuality": self.data_quality,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryReport":
        return cls(
            station_id=data["stationId"],
            observations=[WeatherObservation.from_dict(o) for o in data.get("observations", [])],
            raw_count=data.get("rawCount", 0),
            data_quality=data.get("dataQuality", 0),
        )
