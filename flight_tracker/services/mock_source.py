"""Demo flight-data source: canned flights around "now", real airport reference data."""

import logging
import random
from datetime import datetime, timedelta, timezone
from functools import lru_cache

import airportsdata

from flight_tracker.errors import NotFoundError
from flight_tracker.models import Airport, Flight, FlightStatus, PositionUpdate

LOGGER = logging.getLogger("flight_tracker.mock")

DEMO_POSITION = PositionUpdate(latitude=40.7128, longitude=-74.0060, altitude=35000, speed=550, heading=270)


@lru_cache(maxsize=1)
def load_iata_airports() -> dict:
    """Load the airportsdata IATA table once per process."""
    return airportsdata.load("IATA")


def airport_from_record(record: dict) -> Airport:
    return Airport(
        code=record["iata"],
        name=record.get("name") or "",
        city=record.get("city") or "",
        country=record.get("country") or "",
        latitude=float(record["lat"]),
        longitude=float(record["lon"]),
        timezone=record.get("tz") or None,
    )


class MockFlightSource:
    """Serve deterministic demo flights; only positions are randomized."""

    def __init__(self, airports: dict | None = None, rng=None, utc_now_provider=None):
        self._airports = airports
        self.rng = rng or random.Random()
        self.utc_now_provider = utc_now_provider or (lambda: datetime.now(timezone.utc))

    @property
    def airports(self) -> dict:
        if self._airports is None:
            self._airports = load_iata_airports()
        return self._airports

    def _hours_from_now(self, hours: float) -> datetime:
        return self.utc_now_provider() + timedelta(hours=hours)

    def fetch_flight_by_number(self, flight_number: str) -> Flight:
        airline = "United Airlines" if flight_number[:2] == "UA" else "Delta Airlines"
        return Flight(
            flight_number=flight_number,
            airline=airline,
            departure_airport="JFK",
            arrival_airport="LAX",
            departure_time=self._hours_from_now(1),
            arrival_time=self._hours_from_now(6),
            status=FlightStatus.ACTIVE,
            gate="B12",
            terminal="T2",
            aircraft="Boeing 737-800",
            latitude=DEMO_POSITION.latitude,
            longitude=DEMO_POSITION.longitude,
            altitude=DEMO_POSITION.altitude,
            speed=DEMO_POSITION.speed,
            heading=DEMO_POSITION.heading,
        )

    def fetch_airport_by_code(self, code: str) -> Airport:
        record = self.airports.get(code)
        if record is None:
            raise NotFoundError(f"Unknown airport code {code}.")
        return airport_from_record(record)

    def fetch_flight_position(self, flight_id: str) -> PositionUpdate:
        # Drifts around the demo position, heading roughly west.
        uniform = self.rng.uniform
        return PositionUpdate(
            latitude=DEMO_POSITION.latitude + uniform(-0.05, 0.05),
            longitude=DEMO_POSITION.longitude + uniform(0.0, 0.1),
            altitude=DEMO_POSITION.altitude + uniform(-500, 500),
            speed=DEMO_POSITION.speed + uniform(-10, 10),
            heading=DEMO_POSITION.heading + uniform(-5, 5),
        )

    def fetch_connecting_flights(self, flight_id: str) -> list:
        return [
            Flight(
                flight_number="UA789",
                airline="United Airlines",
                departure_airport="LAX",
                arrival_airport="SFO",
                departure_time=self._hours_from_now(8),
                arrival_time=self._hours_from_now(10),
                status=FlightStatus.SCHEDULED,
                gate="D3",
                terminal="T4",
            ),
            Flight(
                flight_number="DL987",
                airline="Delta Airlines",
                departure_airport="LAX",
                arrival_airport="SEA",
                departure_time=self._hours_from_now(7),
                arrival_time=self._hours_from_now(9),
                status=FlightStatus.SCHEDULED,
                gate="E7",
                terminal="T5",
            ),
        ]

    def fetch_flights_by_airport(self, code: str) -> list:
        self.fetch_airport_by_code(code)
        other = "JFK" if code == "LAX" else "LAX"
        return [
            Flight(
                flight_number="UA123",
                airline="United Airlines",
                departure_airport=code,
                arrival_airport=other,
                departure_time=self._hours_from_now(1),
                arrival_time=self._hours_from_now(6),
                status=FlightStatus.SCHEDULED,
                gate="A1",
                terminal="T1",
            ),
            Flight(
                flight_number="DL456",
                airline="Delta Airlines",
                departure_airport=other,
                arrival_airport=code,
                departure_time=self._hours_from_now(-1),
                arrival_time=self._hours_from_now(2),
                status=FlightStatus.ACTIVE,
                gate="C5",
                terminal="T3",
            ),
        ]
