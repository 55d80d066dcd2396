"""Flight-data source backed by live FlightRadar24 data."""

import logging
import re
from time import monotonic

import requests

from flight_tracker.errors import FlightDataError, NetworkError, NotFoundError
from flight_tracker.flight.mapping import (
    airport_block,
    build_airport,
    build_flight,
    build_position,
    safe_get,
    schedule_entries,
)

LOGGER = logging.getLogger("flight_tracker.flightradar")


class FlightRadarSource:
    """Resolve flights, airports and positions through ``FlightRadarProvider``.

    Flight numbers are resolved to FlightRadar24 ids through the search
    endpoint; only flights that are currently live can be resolved this way.
    Resolved ids are remembered so position polls cost one request each.
    """

    def __init__(self, provider=None, rate_limit_cooldown_seconds: int = 300, connecting_flight_limit: int = 5, clock_fn=None):
        if provider is None:
            from flight_tracker.flight.provider import FlightRadarProvider
            provider = FlightRadarProvider()
        self.provider = provider
        self.rate_limit_cooldown_seconds = int(rate_limit_cooldown_seconds)
        self.connecting_flight_limit = int(connecting_flight_limit)
        self.clock_fn = clock_fn or monotonic
        self._api_cooldown_until = 0.0
        self._flight_ids = {}

    def get_api_cooldown_remaining(self) -> int:
        """Return remaining API cooldown seconds if rate-limited, else 0."""
        return max(0, int(self._api_cooldown_until - self.clock_fn()))

    @staticmethod
    def _extract_status_code(exc: Exception):
        response = getattr(exc, "response", None)
        status = getattr(response, "status_code", None)
        if isinstance(status, int):
            return status
        status = getattr(exc, "status_code", None)
        if isinstance(status, int):
            return status

        message = str(exc).lower()
        if "429" in message and ("too many" in message or "rate" in message):
            return 429
        return None

    @classmethod
    def _is_rate_limited_error(cls, exc: Exception) -> bool:
        if cls._extract_status_code(exc) == 429:
            return True
        message = str(exc).lower()
        return "rate limit" in message or "too many requests" in message

    def _extract_retry_after_seconds(self, exc: Exception) -> int:
        response = getattr(exc, "response", None)
        if response is not None:
            headers = getattr(response, "headers", {}) or {}
            retry_after = headers.get("Retry-After")
            if retry_after:
                try:
                    return max(1, int(retry_after))
                except (TypeError, ValueError):
                    pass

        match = re.search(r"retry\s*after\s*(\d+)", str(exc), flags=re.IGNORECASE)
        if match:
            return max(1, int(match.group(1)))

        return self.rate_limit_cooldown_seconds

    def _call(self, description: str, fn, *args):
        remaining = self.get_api_cooldown_remaining()
        if remaining > 0:
            raise NetworkError(f"FlightRadar24 rate limit active, retry in {remaining}s.")
        try:
            return fn(*args)
        except FlightDataError:
            raise
        except Exception as exc:
            if self._is_rate_limited_error(exc):
                cooldown = self._extract_retry_after_seconds(exc)
                self._api_cooldown_until = self.clock_fn() + cooldown
                LOGGER.warning("Rate-limited while fetching %s; cooling down for %ss.", description, cooldown)
                raise NetworkError(f"Rate-limited while fetching {description}: {exc}") from exc
            if isinstance(exc, requests.RequestException):
                raise NetworkError(f"{description} failed: {exc}") from exc
            if isinstance(exc, ValueError):
                raise NotFoundError(f"{description}: {exc}") from exc
            raise

    def _resolve_flight_id(self, flight_number: str) -> str:
        number = flight_number.upper()
        cached = self._flight_ids.get(number)
        if cached:
            return cached
        results = self._call(f"search for {number}", self.provider.search, number)
        for entry in results.get("live") or []:
            candidates = {
                str(safe_get(entry, "detail", "flight") or "").upper(),
                str(safe_get(entry, "detail", "callsign") or "").upper(),
            }
            if number in candidates and entry.get("id"):
                self._flight_ids[number] = entry["id"]
                return entry["id"]
        raise NotFoundError(f"No live flight found for {number}.")

    def _flight_details(self, flight_number: str) -> dict:
        fr24_id = self._resolve_flight_id(flight_number)
        details = self._call(f"flight details for {flight_number}", self.provider.get_flight_details, fr24_id)
        if not details:
            raise NotFoundError(f"No flight details for {flight_number}.")
        return details

    def _airport_details(self, code: str) -> dict:
        details = self._call(f"airport {code}", self.provider.get_airport_details, code)
        if not airport_block(details):
            raise NotFoundError(f"Unknown airport code {code}.")
        return details

    @staticmethod
    def _board_flights(airport_details: dict, board: str) -> list:
        flights = []
        for entry in schedule_entries(airport_details, board):
            flight = build_flight(entry)
            if flight.flight_number and flight.departure_time and flight.arrival_time:
                flights.append(flight)
        return flights

    def fetch_flight_by_number(self, flight_number: str):
        return build_flight(self._flight_details(flight_number), flight_number=flight_number)

    def fetch_airport_by_code(self, code: str):
        airport = build_airport(airport_block(self._airport_details(code)), code=code)
        if airport is None:
            raise NotFoundError(f"Airport {code} has no position.")
        return airport

    def fetch_flight_position(self, flight_id: str):
        details = self._flight_details(flight_id)
        position = build_position(details)
        if position.latitude is None or position.longitude is None:
            raise NetworkError(f"No position reported for {flight_id}.")
        return position

    def fetch_connecting_flights(self, flight_id: str) -> list:
        flight = self.fetch_flight_by_number(flight_id)
        if not flight.arrival_airport:
            return []
        connections = [
            candidate
            for candidate in self._board_flights(self._airport_details(flight.arrival_airport), "departures")
            if flight.arrival_time is None or candidate.departure_time > flight.arrival_time
        ]
        connections.sort(key=lambda candidate: candidate.departure_time)
        return connections[: self.connecting_flight_limit]

    def fetch_flights_by_airport(self, code: str) -> list:
        details = self._airport_details(code)
        return self._board_flights(details, "departures") + self._board_flights(details, "arrivals")
