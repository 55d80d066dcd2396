import logging
import re
from dataclasses import dataclass
from importlib.util import find_spec
from math import isfinite
from pathlib import Path

import config as app_config

FLIGHT_SOURCES = {"mock", "flightradar24"}


@dataclass(frozen=True)
class AppSettings:
    flight_source: str
    position_refresh_seconds: float
    log_level: str
    log_verbose_events: bool
    notification_store_path: str
    map_min_span_deg: float = 5.0
    airport_span_deg: float = 0.5
    api_rate_limit_cooldown_seconds: int = 300
    connecting_flight_limit: int = 5
    recent_search_limit: int = 5
    notify_show_alert: bool = True
    notify_play_sound: bool = True
    notify_set_badge: bool = True


def _valid_log_level(level_name: str) -> bool:
    return isinstance(getattr(logging, str(level_name).upper(), None), int)


def _positive_finite(value) -> bool:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    return isfinite(number) and number > 0


def validate_settings(settings: AppSettings) -> AppSettings:
    """Validate startup configuration and raise a clear error on invalid values."""
    errors = []

    source = str(settings.flight_source).lower()
    if source not in FLIGHT_SOURCES:
        errors.append("FLIGHT_SOURCE must be 'mock' or 'flightradar24'.")
    if source == "flightradar24" and find_spec("FlightRadar24") is None:
        errors.append(
            "FLIGHT_SOURCE is 'flightradar24', but dependency 'FlightRadarAPI' is not installed. "
            "Install with: pip install FlightRadarAPI"
        )
    if source == "mock" and find_spec("airportsdata") is None:
        errors.append(
            "FLIGHT_SOURCE is 'mock', but dependency 'airportsdata' is not installed. "
            "Install with: pip install airportsdata"
        )

    if not _positive_finite(settings.position_refresh_seconds):
        errors.append("POSITION_REFRESH_SECONDS must be a finite value > 0.")
    if not _positive_finite(settings.map_min_span_deg):
        errors.append("MAP_MIN_SPAN_DEG must be a finite value > 0.")
    if not _positive_finite(settings.airport_span_deg):
        errors.append("AIRPORT_SPAN_DEG must be a finite value > 0.")
    if int(settings.api_rate_limit_cooldown_seconds) <= 0:
        errors.append("API_RATE_LIMIT_COOLDOWN_SECONDS must be > 0.")
    if int(settings.connecting_flight_limit) < 0:
        errors.append("CONNECTING_FLIGHT_LIMIT must be >= 0.")
    if int(settings.recent_search_limit) <= 0:
        errors.append("RECENT_SEARCH_LIMIT must be > 0.")

    store_path = Path(settings.notification_store_path).expanduser()
    if not str(settings.notification_store_path).strip():
        errors.append("NOTIFICATION_STORE_PATH must be a non-empty path.")
    elif store_path.is_dir():
        errors.append(f"NOTIFICATION_STORE_PATH points to a directory: {settings.notification_store_path}")

    if not _valid_log_level(settings.log_level):
        errors.append("LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL (or equivalent).")

    if errors:
        raise ValueError("Invalid configuration:\n- " + "\n- ".join(errors))
    return settings


def load_settings() -> AppSettings:
    try:
        settings = AppSettings(
            flight_source=app_config.FLIGHT_SOURCE,
            position_refresh_seconds=app_config.POSITION_REFRESH_SECONDS,
            log_level=app_config.LOG_LEVEL,
            log_verbose_events=app_config.LOG_VERBOSE_EVENTS,
            notification_store_path=app_config.NOTIFICATION_STORE_PATH,
            map_min_span_deg=getattr(app_config, "MAP_MIN_SPAN_DEG", 5.0),
            airport_span_deg=getattr(app_config, "AIRPORT_SPAN_DEG", 0.5),
            api_rate_limit_cooldown_seconds=getattr(app_config, "API_RATE_LIMIT_COOLDOWN_SECONDS", 300),
            connecting_flight_limit=getattr(app_config, "CONNECTING_FLIGHT_LIMIT", 5),
            recent_search_limit=getattr(app_config, "RECENT_SEARCH_LIMIT", 5),
            notify_show_alert=getattr(app_config, "NOTIFY_SHOW_ALERT", True),
            notify_play_sound=getattr(app_config, "NOTIFY_PLAY_SOUND", True),
            notify_set_badge=getattr(app_config, "NOTIFY_SET_BADGE", True),
        )
    except AttributeError as exc:
        attr_match = re.search(r"has no attribute '([^']+)'", str(exc))
        missing_attr = attr_match.group(1) if attr_match else str(exc)
        raise ValueError(f"Invalid configuration:\n- Missing required config setting: {missing_attr}") from exc
    return validate_settings(settings)
