import logging
import threading
from datetime import datetime, timezone

from flight_tracker.errors import FlightDataError, NotFoundError, ValidationError
from flight_tracker.models import TELEMETRY_FIELDS, PositionUpdate, ScreenState, merge_position
from flight_tracker.tracking.poller import PositionPoller
from flight_tracker.view_model import airport_region, build_flight_view, compute_route_framing

LOGGER = logging.getLogger("flight_tracker")

LOAD_FLIGHT_ERROR = "Failed to load flight data. Please try again."
LOAD_DETAILS_ERROR = "Failed to load flight details. Please try again."


class FlightTrackingController:
    """State of one tracking view: the displayed flight, its airports and its poller."""

    def __init__(
        self,
        settings,
        flight_service=None,
        notification_service=None,
        poller=None,
        utc_now_provider=None,
    ):
        self.settings = settings

        if flight_service is None:
            from flight_tracker.services.flight_service import FlightService, build_flight_source
            flight_service = FlightService(build_flight_source(settings))

        self.flight_service = flight_service
        self.notification_service = notification_service
        self.poller = poller or PositionPoller(flight_service.get_position)
        self.utc_now_provider = utc_now_provider or (lambda: datetime.now(timezone.utc))
        self.current_state = None
        self.flight = None
        self.departure_airport = None
        self.arrival_airport = None
        self.region = None
        self.connecting_flights = []
        self.airport_flights = []
        self.error = None
        self.update_count = 0
        self._last_load = None
        # Guards self.flight: positions are merged on the poll thread.
        self._flight_lock = threading.RLock()

    @property
    def tracking_active(self) -> bool:
        return self.poller.is_active

    def reset(self):
        self.poller.stop()
        with self._flight_lock:
            self.flight = None
            self.update_count = 0
        self.departure_airport = None
        self.arrival_airport = None
        self.region = None
        self.connecting_flights = []
        self.airport_flights = []
        self.error = None

    def _fail(self, message: str, exc: Exception):
        LOGGER.error("%s (%s)", message, exc)
        self.error = message
        self.current_state = ScreenState.ERROR

    def _load_airport_or_none(self, code):
        try:
            return self.flight_service.get_airport(code)
        except NotFoundError as exc:
            LOGGER.warning("Airport %s unavailable (%s); route framing omitted.", code, exc)
            return None

    def _load_route(self):
        self.departure_airport = self._load_airport_or_none(self.flight.departure_airport)
        self.arrival_airport = self._load_airport_or_none(self.flight.arrival_airport)
        self.region = compute_route_framing(
            self.departure_airport,
            self.arrival_airport,
            min_span=self.settings.map_min_span_deg,
        )

    def load_flight(self, flight_number):
        self._last_load = (self.load_flight, flight_number)
        self.reset()
        self.current_state = ScreenState.LOADING
        try:
            self.flight = self.flight_service.get_flight(flight_number)
            self._load_route()
        except ValidationError as exc:
            self._fail(str(exc), exc)
            raise
        except FlightDataError as exc:
            self._fail(LOAD_FLIGHT_ERROR, exc)
            raise
        LOGGER.info(
            "Loaded flight %s (%s -> %s), status %s.",
            self.flight.flight_number,
            self.flight.departure_airport,
            self.flight.arrival_airport,
            self.flight.status.value,
        )
        self.start_tracking()
        return self.flight

    def load_details(self, flight_number):
        self._last_load = (self.load_details, flight_number)
        self.reset()
        self.current_state = ScreenState.LOADING
        try:
            self.flight = self.flight_service.get_flight(flight_number)
            self._load_route()
            self.connecting_flights = self.flight_service.get_connecting_flights(self.flight.flight_number)
        except ValidationError as exc:
            self._fail(str(exc), exc)
            raise
        except FlightDataError as exc:
            self._fail(LOAD_DETAILS_ERROR, exc)
            raise
        self.current_state = ScreenState.IDLE
        return self.flight

    def load_airport(self, code):
        self._last_load = (self.load_airport, code)
        self.reset()
        self.current_state = ScreenState.LOADING
        try:
            self.departure_airport = self.flight_service.get_airport(code)
            self.airport_flights = self.flight_service.get_airport_flights(self.departure_airport.code)
        except ValidationError as exc:
            self._fail(str(exc), exc)
            raise
        except FlightDataError as exc:
            self._fail(LOAD_FLIGHT_ERROR, exc)
            raise
        self.region = airport_region(self.departure_airport, span=self.settings.airport_span_deg)
        self.current_state = ScreenState.AIRPORT
        LOGGER.info("Loaded %s flights for %s.", len(self.airport_flights), self.departure_airport.code)
        return self.airport_flights

    def retry(self):
        if self._last_load is None:
            raise RuntimeError("Nothing to retry; no load has been attempted.")
        load, argument = self._last_load
        return load(argument)

    def start_tracking(self):
        """Poll positions for the current flight; only in-progress flights are polled."""
        if self.flight is None or not self.flight.is_active:
            self.poller.stop()
            self.current_state = ScreenState.IDLE
            return None
        task = self.poller.start(
            self.flight.flight_number,
            self.settings.position_refresh_seconds,
            self.apply_position,
        )
        self.current_state = ScreenState.TRACKING
        return task

    def apply_position(self, update):
        with self._flight_lock:
            if self.flight is None:
                return
            flight = self.flight = merge_position(self.flight, update)
            self.update_count += 1
        LOGGER.info(
            "Position %s: lat=%s lon=%s alt=%s spd=%s hdg=%s",
            flight.flight_number,
            flight.latitude,
            flight.longitude,
            flight.altitude,
            flight.speed,
            flight.heading,
        )

    def toggle_tracking(self) -> bool:
        """Pause or resume position updates; returns whether tracking is now active."""
        if self.poller.is_active:
            self.poller.pause()
            LOGGER.info("Tracking paused for %s.", self.flight.flight_number if self.flight else None)
            return False
        if self.poller.is_running:
            self.poller.resume()
            LOGGER.info("Tracking resumed for %s.", self.flight.flight_number if self.flight else None)
            return True
        return self.start_tracking() is not None

    def refresh(self):
        """Re-fetch the flight record; stop polling once it is no longer in progress."""
        if self.flight is None:
            return None
        try:
            latest = self.flight_service.get_flight(self.flight.flight_number)
        except FlightDataError as exc:
            LOGGER.warning("Refresh of %s failed (%s); keeping current data.", self.flight.flight_number, exc)
            return self.flight
        with self._flight_lock:
            kept = {name: getattr(self.flight, name) for name in TELEMETRY_FIELDS if getattr(latest, name) is None}
            self.flight = merge_position(latest, PositionUpdate(**kept))
            flight = self.flight
        if not latest.is_active and self.poller.is_running:
            LOGGER.info("Flight %s is now %s; stopping position updates.", latest.flight_number, latest.status.value)
            self.poller.stop()
            self.current_state = ScreenState.IDLE
        elif latest.is_active and not self.poller.is_running:
            self.start_tracking()
        return flight

    def notify_me(self):
        if self.flight is None or self.notification_service is None:
            return None
        return self.notification_service.send_local(
            f"Flight {self.flight.flight_number} Update",
            "We'll notify you of any changes to your flight.",
            flight_id=self.flight.flight_number,
        )

    def view(self):
        if self.flight is None:
            return None
        return build_flight_view(
            self.flight,
            self.departure_airport,
            self.arrival_airport,
            now=self.utc_now_provider(),
            min_span=self.settings.map_min_span_deg,
        )

    def close(self):
        self.reset()
        self.current_state = ScreenState.CLOSED
