"""Error types shared by data sources, services and the tracking controller."""


class FlightDataError(Exception):
    """Base class for failures reported by a flight-data source."""


class NotFoundError(FlightDataError):
    """Lookup failed for a flight, airport or connection list."""


class NetworkError(FlightDataError):
    """Transient transport failure (timeouts, connection errors, rate limits)."""


class ValidationError(ValueError):
    """Malformed input rejected before any fetch is attempted."""
