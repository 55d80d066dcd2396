"""Process-wide wiring, built once at startup and handed to collaborators."""

import logging
from dataclasses import dataclass

from flight_tracker.controller import FlightTrackingController
from flight_tracker.services.flight_service import FlightService, build_flight_source
from flight_tracker.services.notification_service import NotificationPolicy, NotificationService, NotificationStore
from flight_tracker.services.search import RecentSearches

LOGGER = logging.getLogger("flight_tracker")


def configure_logging(settings) -> None:
    """Configure app logging with standard Python logging."""
    level_name = str(settings.log_level).upper()
    level = getattr(logging, level_name, logging.INFO)
    if not settings.log_verbose_events and level < logging.WARNING:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@dataclass
class AppContext:
    settings: object
    flight_service: FlightService
    notification_service: NotificationService
    recent_searches: RecentSearches

    def tracking_controller(self, **overrides) -> FlightTrackingController:
        return FlightTrackingController(
            self.settings,
            flight_service=overrides.pop("flight_service", self.flight_service),
            notification_service=overrides.pop("notification_service", self.notification_service),
            **overrides,
        )


def build_app_context(settings=None, flight_source=None, deliver_fn=None) -> AppContext:
    if settings is None:
        from flight_tracker.settings import load_settings
        settings = load_settings()

    source = flight_source or build_flight_source(settings)
    notification_service = NotificationService(
        NotificationStore(settings.notification_store_path),
        policy=NotificationPolicy.from_settings(settings),
        deliver_fn=deliver_fn,
    )
    LOGGER.debug("Using %s flight source.", type(source).__name__)
    return AppContext(
        settings=settings,
        flight_service=FlightService(source),
        notification_service=notification_service,
        recent_searches=RecentSearches(limit=settings.recent_search_limit),
    )
