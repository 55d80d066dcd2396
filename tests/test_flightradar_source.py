from datetime import datetime, timezone

import pytest
import requests

from flight_tracker.errors import NetworkError, NotFoundError
from flight_tracker.flight.mapping import build_flight, map_status
from flight_tracker.models import FlightStatus
from flight_tracker.services.flightradar_source import FlightRadarSource

DEPARTURE = 1704103200  # 2024-01-01 10:00 UTC
ARRIVAL = DEPARTURE + 6 * 3600


def flight_details(number="UA123", live=True, status_text="Estimated- 16:10", trail=True):
    return {
        "identification": {"number": {"default": number}},
        "status": {"live": live, "text": status_text, "generic": {"status": {"text": "estimated"}}},
        "airline": {"name": "United Airlines"},
        "aircraft": {"model": {"text": "Boeing 737-800"}},
        "airport": {
            "origin": {"code": {"iata": "JFK"}, "info": {"gate": "B12", "terminal": "2"}},
            "destination": {"code": {"iata": "LAX"}},
        },
        "time": {
            "scheduled": {"departure": DEPARTURE, "arrival": ARRIVAL},
            "estimated": {"departure": None, "arrival": ARRIVAL + 20 * 60},
            "real": {"departure": DEPARTURE + 300, "arrival": None},
        },
        "trail": [{"lat": 41.2, "lng": -80.1, "alt": 36000, "spd": 470, "hd": 268}] if trail else [],
    }


def board_entry(number, departure):
    return {
        "flight": {
            "identification": {"number": {"default": number}},
            "status": {"live": False, "text": "Scheduled", "generic": {"status": {"text": "scheduled"}}},
            "airline": {"name": "United Airlines"},
            "airport": {"origin": {"code": {"iata": "LAX"}}, "destination": {"code": {"iata": "SFO"}}},
            "time": {"scheduled": {"departure": departure, "arrival": departure + 5400}},
        }
    }


def airport_details(code="LAX", departures=(), arrivals=()):
    return {
        "airport": {
            "pluginData": {
                "details": {
                    "name": "Los Angeles International Airport",
                    "code": {"iata": code},
                    "position": {
                        "latitude": 33.9425,
                        "longitude": -118.408,
                        "country": {"name": "United States"},
                        "region": {"city": "Los Angeles"},
                    },
                    "timezone": {"name": "America/Los_Angeles"},
                },
                "schedule": {
                    "departures": {"data": list(departures)},
                    "arrivals": {"data": list(arrivals)},
                },
            }
        }
    }


class FakeProvider:
    def __init__(self, details=None, airports=None, error=None):
        self.details = details or flight_details()
        self.airports = airports or {"LAX": airport_details()}
        self.error = error
        self.searches = []
        self.detail_calls = []

    def search(self, query):
        self.searches.append(query)
        if self.error:
            raise self.error
        return {"live": [{"id": "abc123", "detail": {"flight": query, "callsign": "UAL123"}}]}

    def get_flight_details(self, fr24_id):
        self.detail_calls.append(fr24_id)
        if self.error:
            raise self.error
        return self.details

    def get_airport_details(self, code):
        if self.error:
            raise self.error
        return self.airports.get(code, {})


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def _source(provider, clock=None):
    return FlightRadarSource(provider=provider, rate_limit_cooldown_seconds=120, connecting_flight_limit=2, clock_fn=clock)


def test_flight_maps_details():
    flight = _source(FakeProvider()).fetch_flight_by_number("UA123")

    assert flight.flight_number == "UA123"
    assert flight.status == FlightStatus.ACTIVE
    assert flight.departure_time == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
    assert (flight.gate, flight.terminal) == ("B12", "2")
    assert flight.latitude == 41.2
    assert flight.delay == 20


def test_flight_id_resolution_is_cached():
    provider = FakeProvider()
    source = _source(provider)

    source.fetch_flight_by_number("UA123")
    source.fetch_flight_position("UA123")

    assert provider.searches == ["UA123"]
    assert provider.detail_calls == ["abc123", "abc123"]


def test_flight_without_live_match_is_not_found():
    provider = FakeProvider()
    provider.search = lambda query: {"live": [{"id": "zzz", "detail": {"flight": "DL1"}}]}

    with pytest.raises(NotFoundError):
        _source(provider).fetch_flight_by_number("UA123")


def test_position_from_latest_trail_point():
    position = _source(FakeProvider()).fetch_flight_position("UA123")

    assert (position.latitude, position.longitude, position.altitude, position.speed, position.heading) == (
        41.2,
        -80.1,
        36000,
        470,
        268,
    )


def test_missing_position_is_a_network_error():
    with pytest.raises(NetworkError):
        _source(FakeProvider(details=flight_details(trail=False))).fetch_flight_position("UA123")


def test_airport_maps_details_block():
    airport = _source(FakeProvider()).fetch_airport_by_code("LAX")

    assert airport.code == "LAX"
    assert airport.city == "Los Angeles"
    assert airport.country == "United States"
    assert airport.timezone == "America/Los_Angeles"


def test_unknown_airport_is_not_found():
    with pytest.raises(NotFoundError):
        _source(FakeProvider()).fetch_airport_by_code("ZZZ")


def test_connecting_flights_depart_after_arrival_sorted_and_limited():
    departures = [
        board_entry("UA900", ARRIVAL + 7200),
        board_entry("UA100", ARRIVAL - 600),
        board_entry("UA789", ARRIVAL + 3600),
        board_entry("UA950", ARRIVAL + 9000),
    ]
    provider = FakeProvider(airports={"LAX": airport_details(departures=departures)})

    connections = _source(provider).fetch_connecting_flights("UA123")

    assert [flight.flight_number for flight in connections] == ["UA789", "UA900"]


def test_airport_flights_include_both_boards():
    provider = FakeProvider(
        airports={"LAX": airport_details(departures=[board_entry("UA1", DEPARTURE)], arrivals=[board_entry("UA2", DEPARTURE)])}
    )
    flights = _source(provider).fetch_flights_by_airport("LAX")

    assert [flight.flight_number for flight in flights] == ["UA1", "UA2"]


def test_requests_error_becomes_network_error():
    with pytest.raises(NetworkError):
        _source(FakeProvider(error=requests.ConnectionError("connection refused"))).fetch_flight_by_number("UA123")


def test_rate_limit_starts_cooldown():
    clock = FakeClock()
    response = requests.Response()
    response.status_code = 429
    response.headers["Retry-After"] = "30"
    provider = FakeProvider(error=requests.HTTPError("429 Too Many Requests", response=response))
    source = _source(provider, clock)

    with pytest.raises(NetworkError):
        source.fetch_flight_by_number("UA123")
    assert source.get_api_cooldown_remaining() == 30

    provider.error = None
    with pytest.raises(NetworkError, match="rate limit active"):
        source.fetch_flight_by_number("UA123")
    assert provider.searches == ["UA123"]

    clock.now += 31
    assert source.fetch_flight_by_number("UA123").flight_number == "UA123"


def test_rate_limit_message_without_response_uses_default_cooldown():
    clock = FakeClock()
    source = _source(FakeProvider(error=RuntimeError("Too Many Requests")), clock)

    with pytest.raises(NetworkError):
        source.fetch_flight_by_number("UA123")

    assert source.get_api_cooldown_remaining() == 120


def test_unexpected_errors_propagate():
    with pytest.raises(KeyError):
        _source(FakeProvider(error=KeyError("identification"))).fetch_flight_by_number("UA123")


@pytest.mark.parametrize(
    "status,expected",
    [
        ({"live": True, "text": "Estimated- 16:10"}, FlightStatus.ACTIVE),
        ({"live": False, "text": "Landed 16:02"}, FlightStatus.LANDED),
        ({"live": False, "text": "Canceled"}, FlightStatus.CANCELLED),
        ({"live": True, "text": "Diverted to SAN"}, FlightStatus.DIVERTED),
        ({"live": False, "text": "Delayed 10:45"}, FlightStatus.DELAYED),
        ({"live": False, "text": "Scheduled"}, FlightStatus.SCHEDULED),
        ({}, FlightStatus.SCHEDULED),
    ],
)
def test_map_status(status, expected):
    assert map_status({"status": status}) == expected


def test_board_flight_without_position_has_no_telemetry():
    flight = build_flight(board_entry("UA789", DEPARTURE)["flight"])

    assert flight.status == FlightStatus.SCHEDULED
    assert flight.has_position is False
    assert flight.delay is None
