"""Flight search parameters, normalized quotes and the search result."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

TRIP_ONE_WAY = "one-way"
TRIP_ROUND_TRIP = "round-trip"

SORT_BY_PRICE = 2


@dataclass(frozen=True)
class FlightSearchParams:
    origin: str
    destination: str
    outbound_date: str  # YYYY-MM-DD
    return_date: str | None = None
    trip_type: str = TRIP_ONE_WAY
    sort_by: int = SORT_BY_PRICE
    max_stops: int | None = None
    deep_search: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Wire shape, also used (JSON-encoded) as the cache key."""
        data: dict[str, Any] = {
            "from": self.origin,
            "to": self.destination,
            "outbound_date": self.outbound_date,
            "return_date": self.return_date,
            "type": self.trip_type,
            "deep_search": self.deep_search,
            "sort_by": self.sort_by,
            "stops": self.max_stops,
        }
        return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True)
class FlightQuote:
    price: float
    currency: str
    airline: str | None = None
    duration_minutes: int | None = None
    departure_time: str | None = None
    arrival_time: str | None = None
    stops: int | None = None
    booking_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "price": self.price,
            "currency": self.currency,
            "airline": self.airline,
            "durationMinutes": self.duration_minutes,
            "departureTime": self.departure_time,
            "arrivalTime": self.arrival_time,
            "stops": self.stops,
            "bookingUrl": self.booking_url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FlightQuote":
        return cls(
            price=float(data["price"]),
            currency=data.get("currency", "USD"),
            airline=data.get("airline"),
            duration_minutes=data.get("durationMinutes"),
            departure_time=data.get("departureTime"),
            arrival_time=data.get("arrivalTime"),
            stops=data.get("stops"),
            booking_url=data.get("bookingUrl"),
        )


@dataclass(frozen=True)
class FlightSearchResult:
    cheapest: FlightQuote | None
    all: list[FlightQuote] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cheapest": self.cheapest.to_dict() if self.cheapest else None,
            "all": [q.to_dict() for q in self.all],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FlightSearchResult":
        cheapest = data.get("cheapest")
        return cls(
            cheapest=FlightQuote.from_dict(cheapest) if cheapest else None,
            all=[FlightQuote.from_dict(q) for q in data.get("all", [])],
        )
