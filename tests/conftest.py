import sys
import types


if "config" not in sys.modules:
    config = types.ModuleType("config")
    config.FLIGHT_SOURCE = "mock"
    config.POSITION_REFRESH_SECONDS = 10
    config.MAP_MIN_SPAN_DEG = 5.0
    config.AIRPORT_SPAN_DEG = 0.5
    config.API_RATE_LIMIT_COOLDOWN_SECONDS = 300
    config.CONNECTING_FLIGHT_LIMIT = 5
    config.RECENT_SEARCH_LIMIT = 5
    config.NOTIFICATION_STORE_PATH = "notifications.json"
    config.NOTIFY_SHOW_ALERT = True
    config.NOTIFY_PLAY_SOUND = True
    config.NOTIFY_SET_BADGE = True
    config.LOG_LEVEL = "INFO"
    config.LOG_VERBOSE_EVENTS = True
    sys.modules["config"] = config
