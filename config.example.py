"""
Configuration settings for Flight Tracker.

Copy this file to config.py and modify the values to customize the tracker.
"""

# =============================================================================
# Flight Data
# =============================================================================
# Where flight, airport and position data comes from.
# "mock" serves built-in demo flights (airports from the airportsdata table).
# "flightradar24" uses live data through the FlightRadarAPI package.
FLIGHT_SOURCE = "mock"

# Default cooldown (seconds) when an API rate-limit response does not provide Retry-After.
API_RATE_LIMIT_COOLDOWN_SECONDS = 300

# Maximum number of connecting flights listed on the details view.
CONNECTING_FLIGHT_LIMIT = 5

# =============================================================================
# Tracking
# =============================================================================
# How often to refresh the live position of a tracked flight (in seconds).
POSITION_REFRESH_SECONDS = 10

# Minimum span (degrees) of the map region framing a route.
# Keeps short hops from zooming in too far.
MAP_MIN_SPAN_DEG = 5.0

# Span (degrees) of the map region centred on a single airport.
AIRPORT_SPAN_DEG = 0.5

# =============================================================================
# Search & Notifications
# =============================================================================
# Number of recent searches to remember.
RECENT_SEARCH_LIMIT = 5

# JSON file holding "notify me" records.
NOTIFICATION_STORE_PATH = "notifications.json"

# How delivered notifications are presented.
# SHOW_ALERT logs deliveries at INFO (DEBUG otherwise), PLAY_SOUND tags them with
# [sound], SET_BADGE logs the unread count after each change.
NOTIFY_SHOW_ALERT = True
NOTIFY_PLAY_SOUND = True
NOTIFY_SET_BADGE = True

# =============================================================================
# Logging
# =============================================================================
# Verbose runtime logging for tracking state changes, polling and retries.
LOG_VERBOSE_EVENTS = True

# Standard Python logging level (e.g. DEBUG, INFO, WARNING, ERROR).
LOG_LEVEL = "INFO"
