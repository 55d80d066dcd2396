import logging
import re

from flight_tracker.errors import ValidationError

LOGGER = logging.getLogger("flight_tracker")
FLIGHT_NUMBER_RE = re.compile(r"^[A-Z0-9]{2,8}$")
AIRPORT_CODE_RE = re.compile(r"^[A-Z0-9]{3,4}$")


def normalize_flight_number(value) -> str:
    number = str(value or "").strip().upper().replace(" ", "")
    if not number:
        raise ValidationError("Please enter a flight number.")
    if not FLIGHT_NUMBER_RE.match(number):
        raise ValidationError(f"Invalid flight number: {value!r}.")
    return number


def normalize_airport_code(value) -> str:
    code = str(value or "").strip().upper()
    if not code:
        raise ValidationError("Please enter an airport code.")
    if not AIRPORT_CODE_RE.match(code):
        raise ValidationError(f"Invalid airport code: {value!r}.")
    return code


def build_flight_source(settings):
    source = str(settings.flight_source).lower()
    if source == "flightradar24":
        from flight_tracker.services.flightradar_source import FlightRadarSource
        return FlightRadarSource(
            rate_limit_cooldown_seconds=settings.api_rate_limit_cooldown_seconds,
            connecting_flight_limit=settings.connecting_flight_limit,
        )
    from flight_tracker.services.mock_source import MockFlightSource
    return MockFlightSource()


class FlightService:
    """Validated entry point to the configured flight-data source."""

    def __init__(self, source):
        self._source = source

    def get_flight(self, flight_number):
        number = normalize_flight_number(flight_number)
        LOGGER.info("Fetching flight %s.", number)
        return self._source.fetch_flight_by_number(number)

    def get_airport(self, code):
        code = normalize_airport_code(code)
        LOGGER.info("Fetching airport %s.", code)
        return self._source.fetch_airport_by_code(code)

    def get_position(self, flight_id):
        return self._source.fetch_flight_position(normalize_flight_number(flight_id))

    def get_connecting_flights(self, flight_id):
        number = normalize_flight_number(flight_id)
        LOGGER.info("Fetching connecting flights for %s.", number)
        return self._source.fetch_connecting_flights(number)

    def get_airport_flights(self, code):
        code = normalize_airport_code(code)
        LOGGER.info("Fetching flights for airport %s.", code)
        return self._source.fetch_flights_by_airport(code)
