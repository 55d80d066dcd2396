"""Display-ready values derived from flight and airport records.

Everything here is a pure function of its inputs: no I/O, no clocks. Callers
pass ``now`` explicitly where a relative value is needed.
"""

from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from math import asin, cos, floor, radians, sin, sqrt
from typing import NamedTuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from flight_tracker.models import Airport, Flight, FlightStatus, MapRegion, StatusCategory

ROUTE_SPAN_FACTOR = 1.5
DEFAULT_MIN_SPAN_DEG = 5.0
DEFAULT_AIRPORT_SPAN_DEG = 0.5
DELAY_THRESHOLD = timedelta(minutes=15)
MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 1440

_STATUS_CATEGORIES = {
    FlightStatus.ACTIVE: StatusCategory.SUCCESS,
    FlightStatus.LANDED: StatusCategory.INFO,
    FlightStatus.DELAYED: StatusCategory.WARNING,
    FlightStatus.CANCELLED: StatusCategory.ERROR,
    FlightStatus.DIVERTED: StatusCategory.ERROR,
    FlightStatus.SCHEDULED: StatusCategory.NEUTRAL,
}

CATEGORY_COLORS = {
    StatusCategory.SUCCESS: "#2ECC71",
    StatusCategory.INFO: "#3498DB",
    StatusCategory.WARNING: "#F39C12",
    StatusCategory.ERROR: "#E74C3C",
    StatusCategory.NEUTRAL: "#3498DB",
}


class Duration(NamedTuple):
    hours: int
    minutes: int

    def __str__(self) -> str:
        if self.hours == 0:
            return f"{self.minutes}m"
        return f"{self.hours}h {self.minutes}m"


def compute_route_framing(
    departure: Airport | None,
    arrival: Airport | None,
    min_span: float = DEFAULT_MIN_SPAN_DEG,
) -> MapRegion | None:
    """Centre the map between two airports with a padded span, or None if either is missing."""
    if departure is None or arrival is None:
        return None
    lat_delta = abs(departure.latitude - arrival.latitude) * ROUTE_SPAN_FACTOR
    lon_delta = abs(departure.longitude - arrival.longitude) * ROUTE_SPAN_FACTOR
    return MapRegion(
        latitude=(departure.latitude + arrival.latitude) / 2,
        longitude=(departure.longitude + arrival.longitude) / 2,
        latitude_delta=max(lat_delta, min_span),
        longitude_delta=max(lon_delta, min_span),
    )


def airport_region(airport: Airport, span: float = DEFAULT_AIRPORT_SPAN_DEG) -> MapRegion:
    return MapRegion(
        latitude=airport.latitude,
        longitude=airport.longitude,
        latitude_delta=span,
        longitude_delta=span,
    )


def format_duration(total_minutes: int) -> Duration:
    total_minutes = int(total_minutes)
    return Duration(hours=total_minutes // MINUTES_PER_HOUR, minutes=total_minutes % MINUTES_PER_HOUR)


def minutes_between(instant_a: datetime, instant_b: datetime) -> int:
    """Whole minutes from ``instant_a`` to ``instant_b``, floored, then made non-negative."""
    return abs(floor((instant_b - instant_a).total_seconds() / 60))


def classify_status(status) -> StatusCategory:
    """Map a flight status (enum member or its value) to a display category.

    Unknown values fall back to NEUTRAL, the same category as SCHEDULED.
    """
    try:
        status = FlightStatus(str(getattr(status, "value", status)).upper())
    except ValueError:
        return StatusCategory.NEUTRAL
    return _STATUS_CATEGORIES.get(status, StatusCategory.NEUTRAL)


def status_color(status) -> str:
    return CATEGORY_COLORS[classify_status(status)]


def is_delayed(scheduled_time: datetime, estimated_time: datetime) -> bool:
    return (estimated_time - scheduled_time) > DELAY_THRESHOLD


def relative_time(instant: datetime, now: datetime) -> str:
    diff_minutes = floor((instant - now).total_seconds() / 60)
    if diff_minutes < 0:
        minutes = abs(diff_minutes)
        if minutes < MINUTES_PER_HOUR:
            return f"{minutes}m ago"
        if minutes < MINUTES_PER_DAY:
            return f"{minutes // MINUTES_PER_HOUR}h ago"
        return f"{minutes // MINUTES_PER_DAY}d ago"
    if diff_minutes < MINUTES_PER_HOUR:
        return f"in {diff_minutes}m"
    if diff_minutes < MINUTES_PER_DAY:
        return f"in {diff_minutes // MINUTES_PER_HOUR}h"
    return f"in {diff_minutes // MINUTES_PER_DAY}d"


@lru_cache(maxsize=1)
def _timezone_finder():
    from timezonefinder import TimezoneFinder

    return TimezoneFinder()


def airport_timezone(airport: Airport | None) -> tzinfo:
    """Return the airport's local zone; look it up by coordinates when the record has none."""
    if airport is None:
        return timezone.utc
    name = airport.timezone
    if not name:
        name = _timezone_finder().timezone_at(lng=airport.longitude, lat=airport.latitude)
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        return timezone.utc


def format_time(instant: datetime, tz: tzinfo | None = None) -> str:
    local = instant.astimezone(tz or timezone.utc)
    return local.strftime("%I:%M %p")


def format_date(instant: datetime, tz: tzinfo | None = None) -> str:
    local = instant.astimezone(tz or timezone.utc)
    return f"{local:%a, %b} {local.day}"


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate great-circle distance in kilometers."""
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])
    dlon = lon2 - lon1
    dlat = lat2 - lat1
    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * asin(sqrt(a))
    return c * 6371.0


def distance_remaining_km(flight: Flight, arrival: Airport | None) -> float | None:
    if arrival is None or not flight.has_position:
        return None
    return haversine_km(flight.latitude, flight.longitude, arrival.latitude, arrival.longitude)


def _region_payload(region: MapRegion | None):
    if region is None:
        return None
    return {
        "latitude": region.latitude,
        "longitude": region.longitude,
        "latitude_delta": region.latitude_delta,
        "longitude_delta": region.longitude_delta,
    }


def build_flight_view(
    flight: Flight,
    departure: Airport | None,
    arrival: Airport | None,
    now: datetime,
    min_span: float = DEFAULT_MIN_SPAN_DEG,
) -> dict:
    """Assemble the display payload for the tracking and detail views."""
    departure_tz = airport_timezone(departure)
    arrival_tz = airport_timezone(arrival)
    category = classify_status(flight.status)
    distance = distance_remaining_km(flight, arrival)
    departs_at, arrives_at = flight.departure_time, flight.arrival_time
    # Live records can lack a schedule; those fields are left empty.
    scheduled = departs_at is not None and arrives_at is not None
    return {
        "flight_number": flight.flight_number,
        "airline": flight.airline,
        "route": f"{flight.departure_airport} -> {flight.arrival_airport}",
        "status": flight.status.value,
        "status_category": category.value,
        "status_color": CATEGORY_COLORS[category],
        "departure_date": format_date(departs_at, departure_tz) if departs_at else None,
        "departure_time": format_time(departs_at, departure_tz) if departs_at else None,
        "arrival_time": format_time(arrives_at, arrival_tz) if arrives_at else None,
        "departs": relative_time(departs_at, now) if departs_at else None,
        "duration": str(format_duration(minutes_between(departs_at, arrives_at))) if scheduled else None,
        "delay": str(format_duration(flight.delay)) if flight.delay else None,
        "gate": flight.gate,
        "terminal": flight.terminal,
        "aircraft": flight.aircraft,
        "position": {
            "latitude": flight.latitude,
            "longitude": flight.longitude,
            "altitude": flight.altitude,
            "speed": flight.speed,
            "heading": flight.heading,
        }
        if flight.has_position
        else None,
        "distance_remaining_km": round(distance, 1) if distance is not None else None,
        "region": _region_payload(compute_route_framing(departure, arrival, min_span=min_span)),
    }
