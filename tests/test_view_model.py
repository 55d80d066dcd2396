from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from flight_tracker import view_model
from flight_tracker.models import Airport, FlightStatus, MapRegion, StatusCategory
from flight_tracker.view_model import (
    airport_region,
    airport_timezone,
    build_flight_view,
    classify_status,
    compute_route_framing,
    format_date,
    format_duration,
    format_time,
    haversine_km,
    is_delayed,
    minutes_between,
    relative_time,
    status_color,
)
from tests.fakes import JFK, LAX, NOW, make_flight


def test_route_framing_between_jfk_and_lax():
    region = compute_route_framing(JFK, LAX)

    assert region.latitude == pytest.approx(37.29145)
    assert region.longitude == pytest.approx(-96.0933)
    assert region.latitude_delta == pytest.approx(10.04955)
    assert region.longitude_delta == pytest.approx(66.9456)


def test_route_framing_applies_minimum_span_for_short_hops():
    nearby = Airport("LGA", "LaGuardia", "New York", "United States", 40.7769, -73.8740)
    region = compute_route_framing(JFK, nearby)

    assert region.latitude_delta == 5.0
    assert region.longitude_delta == 5.0


def test_route_framing_respects_configured_minimum_span():
    nearby = Airport("LGA", "LaGuardia", "New York", "United States", 40.7769, -73.8740)
    assert compute_route_framing(JFK, nearby, min_span=1.0).latitude_delta == 1.0


def test_route_framing_omitted_when_airport_missing():
    assert compute_route_framing(JFK, None) is None
    assert compute_route_framing(None, LAX) is None


def test_airport_region_is_centred_on_airport():
    assert airport_region(JFK) == MapRegion(40.6413, -73.7781, 0.5, 0.5)


@pytest.mark.parametrize(
    "minutes,expected,parts",
    [(125, "2h 5m", (2, 5)), (45, "45m", (0, 45)), (60, "1h 0m", (1, 0)), (0, "0m", (0, 0))],
)
def test_format_duration(minutes, expected, parts):
    duration = format_duration(minutes)
    assert str(duration) == expected
    assert (duration.hours, duration.minutes) == parts


def test_minutes_between_is_absolute_and_truncated():
    start = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
    end = datetime(2024, 1, 1, 16, 0, tzinfo=timezone.utc)

    assert minutes_between(start, end) == 360
    assert minutes_between(end, start) == 360
    assert minutes_between(start, start + timedelta(seconds=119)) == 1


@pytest.mark.parametrize("seconds,expected", [(30, 0), (-30, 1), (-60, 1), (-61, 2), (90, 1)])
def test_minutes_between_floors_before_taking_magnitude(seconds, expected):
    assert minutes_between(NOW, NOW + timedelta(seconds=seconds)) == expected


@pytest.mark.parametrize(
    "status,category",
    [
        (FlightStatus.ACTIVE, StatusCategory.SUCCESS),
        (FlightStatus.LANDED, StatusCategory.INFO),
        (FlightStatus.DELAYED, StatusCategory.WARNING),
        (FlightStatus.CANCELLED, StatusCategory.ERROR),
        (FlightStatus.DIVERTED, StatusCategory.ERROR),
        (FlightStatus.SCHEDULED, StatusCategory.NEUTRAL),
        ("BOARDING", StatusCategory.NEUTRAL),
        (None, StatusCategory.NEUTRAL),
        ("landed", StatusCategory.INFO),
    ],
)
def test_classify_status_is_total(status, category):
    assert classify_status(status) == category


def test_every_status_has_a_category_and_colour():
    for status in FlightStatus:
        assert classify_status(status) in set(StatusCategory)
        assert status_color(status).startswith("#")
    assert status_color(FlightStatus.CANCELLED) == status_color(FlightStatus.DIVERTED)


def test_is_delayed_boundary():
    scheduled = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)

    assert is_delayed(scheduled, scheduled + timedelta(minutes=15)) is False
    assert is_delayed(scheduled, scheduled + timedelta(minutes=15, seconds=1)) is True
    assert is_delayed(scheduled, scheduled - timedelta(minutes=30)) is False


@pytest.mark.parametrize(
    "offset,expected",
    [
        (timedelta(minutes=-30), "30m ago"),
        (timedelta(minutes=-90), "1h ago"),
        (timedelta(days=-2, minutes=-5), "2d ago"),
        (timedelta(seconds=-30), "1m ago"),
        (timedelta(minutes=0), "in 0m"),
        (timedelta(minutes=45), "in 45m"),
        (timedelta(minutes=60), "in 1h"),
        (timedelta(hours=23, minutes=59), "in 23h"),
        (timedelta(minutes=1440), "in 1d"),
    ],
)
def test_relative_time_buckets(offset, expected):
    assert relative_time(NOW + offset, NOW) == expected


def test_format_time_and_date_use_airport_zone():
    instant = datetime(2024, 1, 1, 13, 5, tzinfo=timezone.utc)
    tz = airport_timezone(JFK)

    assert format_time(instant, tz) == "08:05 AM"
    assert format_date(instant, tz) == "Mon, Jan 1"
    assert format_time(instant) == "01:05 PM"


def test_airport_timezone_falls_back_to_coordinate_lookup(monkeypatch):
    lookups = []

    def fake_finder():
        return SimpleNamespace(timezone_at=lambda lng, lat: lookups.append((lat, lng)) or "Europe/London")

    monkeypatch.setattr(view_model, "_timezone_finder", fake_finder)
    heathrow = Airport("LHR", "London Heathrow Airport", "London", "United Kingdom", 51.47, -0.4543)

    assert str(airport_timezone(heathrow)) == "Europe/London"
    assert lookups == [(51.47, -0.4543)]


def test_airport_timezone_defaults_to_utc():
    assert airport_timezone(None) == timezone.utc
    broken = Airport("XXX", "Nowhere", "", "", 0.0, 0.0, timezone="Not/AZone")
    assert airport_timezone(broken) == timezone.utc


def test_haversine_jfk_to_lax():
    assert haversine_km(JFK.latitude, JFK.longitude, LAX.latitude, LAX.longitude) == pytest.approx(3983, rel=0.01)


def test_build_flight_view_for_active_flight():
    flight = make_flight(departure_time=NOW - timedelta(hours=1), arrival_time=NOW + timedelta(hours=5), delay=20)

    view = build_flight_view(flight, JFK, LAX, now=NOW)

    assert view["status"] == "ACTIVE"
    assert view["status_category"] == "success"
    assert view["status_color"] == "#2ECC71"
    assert view["route"] == "JFK -> LAX"
    assert view["duration"] == "6h 0m"
    assert view["delay"] == "20m"
    assert view["departs"] == "1h ago"
    assert view["position"]["altitude"] == 35000
    assert view["distance_remaining_km"] > 3000
    assert view["region"]["latitude_delta"] == pytest.approx(10.04955)


def test_build_flight_view_without_airports_or_position():
    flight = make_flight(status=FlightStatus.SCHEDULED, latitude=None, longitude=None)

    view = build_flight_view(flight, None, None, now=NOW)

    assert view["status_category"] == "neutral"
    assert view["position"] is None
    assert view["distance_remaining_km"] is None
    assert view["region"] is None
    assert view["delay"] is None


def test_build_flight_view_without_schedule_leaves_times_empty():
    flight = make_flight(departure_time=None, arrival_time=None)

    view = build_flight_view(flight, JFK, LAX, now=NOW)

    assert view["departure_time"] is None
    assert view["duration"] is None
    assert view["departs"] is None
    assert view["position"] is not None
