"""FlightRadar24 payload mapping helpers."""

from flight_tracker.models import Airport, Flight, FlightStatus, PositionUpdate, parse_instant


def safe_get(mapping, *keys):
    """Nested dict lookup with graceful None fallback."""
    value = mapping
    for key in keys:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def map_status(details: dict) -> FlightStatus:
    """Translate FlightRadar24 status blocks into a FlightStatus."""
    generic = str(safe_get(details, "status", "generic", "status", "text") or "").lower()
    text = str(safe_get(details, "status", "text") or "").lower()
    if generic in {"canceled", "cancelled"} or text.startswith("cancel"):
        return FlightStatus.CANCELLED
    if generic == "diverted" or text.startswith("diverted"):
        return FlightStatus.DIVERTED
    if generic == "landed" or text.startswith("landed"):
        return FlightStatus.LANDED
    if safe_get(details, "status", "live"):
        return FlightStatus.ACTIVE
    if generic == "delayed" or text.startswith("delayed"):
        return FlightStatus.DELAYED
    return FlightStatus.SCHEDULED


def _leg_time(details: dict, leg: str):
    for kind in ("scheduled", "estimated", "real"):
        value = safe_get(details, "time", kind, leg)
        if value:
            return parse_instant(value)
    return None


def _delay_minutes(details: dict) -> int | None:
    scheduled = safe_get(details, "time", "scheduled", "arrival")
    estimated = safe_get(details, "time", "estimated", "arrival") or safe_get(details, "time", "real", "arrival")
    if not scheduled or not estimated:
        return None
    minutes = int((estimated - scheduled) // 60)
    return minutes if minutes > 0 else None


def latest_trail_point(details: dict) -> dict | None:
    trail = details.get("trail")
    if isinstance(trail, list) and trail:
        # Most recent point first.
        return trail[0] or trail[-1]
    return None


def build_position(details: dict) -> PositionUpdate:
    point = latest_trail_point(details) or {}
    return PositionUpdate(
        latitude=point.get("lat"),
        longitude=point.get("lng"),
        altitude=point.get("alt"),
        speed=point.get("spd"),
        heading=point.get("hd"),
    )


def build_flight(details: dict, flight_number: str | None = None) -> Flight:
    """Map a flight details dict (or a schedule board entry) into a Flight."""
    number = safe_get(details, "identification", "number", "default") or flight_number
    status = map_status(details)
    position = build_position(details) if status == FlightStatus.ACTIVE else PositionUpdate()
    return Flight(
        flight_number=str(number or "").upper(),
        airline=safe_get(details, "airline", "name") or "",
        departure_airport=safe_get(details, "airport", "origin", "code", "iata") or "",
        arrival_airport=safe_get(details, "airport", "destination", "code", "iata") or "",
        departure_time=_leg_time(details, "departure"),
        arrival_time=_leg_time(details, "arrival"),
        status=status,
        gate=safe_get(details, "airport", "origin", "info", "gate"),
        terminal=safe_get(details, "airport", "origin", "info", "terminal"),
        aircraft=safe_get(details, "aircraft", "model", "text"),
        latitude=position.latitude,
        longitude=position.longitude,
        altitude=position.altitude,
        speed=position.speed,
        heading=position.heading,
        delay=_delay_minutes(details),
    )


def airport_block(airport_details: dict) -> dict | None:
    """Return the airport description block of an airport details response."""
    return safe_get(airport_details, "airport", "pluginData", "details") or safe_get(airport_details, "details")


def build_airport(block: dict, code: str | None = None) -> Airport | None:
    """Map an airport block (airport details, or origin/destination of a flight) into an Airport."""
    latitude = safe_get(block, "position", "latitude")
    longitude = safe_get(block, "position", "longitude")
    if latitude is None or longitude is None:
        return None
    return Airport(
        code=safe_get(block, "code", "iata") or code or "",
        name=block.get("name") or "",
        city=safe_get(block, "position", "region", "city") or "",
        country=safe_get(block, "position", "country", "name") or "",
        latitude=float(latitude),
        longitude=float(longitude),
        timezone=safe_get(block, "timezone", "name"),
    )


def schedule_entries(airport_details: dict, board: str) -> list:
    """Return the flight entries of an airport's 'arrivals' or 'departures' board."""
    data = safe_get(airport_details, "airport", "pluginData", "schedule", board, "data") or []
    return [entry.get("flight") for entry in data if isinstance(entry, dict) and entry.get("flight")]
