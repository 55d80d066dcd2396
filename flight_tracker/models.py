from dataclasses import asdict, dataclass, fields, replace
from datetime import datetime, timezone
from enum import Enum


class FlightStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    ACTIVE = "ACTIVE"
    LANDED = "LANDED"
    CANCELLED = "CANCELLED"
    DIVERTED = "DIVERTED"
    DELAYED = "DELAYED"


class StatusCategory(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    NEUTRAL = "neutral"


class ScreenState(str, Enum):
    LOADING = "loading"
    TRACKING = "tracking"
    IDLE = "idle"
    AIRPORT = "airport"
    ERROR = "error"
    CLOSED = "closed"


def parse_instant(value) -> datetime | None:
    """Coerce ISO-8601 strings, epoch seconds or datetimes to an aware UTC-based datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def format_instant(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class PositionUpdate:
    """Telemetry returned by one position poll. ``None`` means no new value."""

    latitude: float | None = None
    longitude: float | None = None
    altitude: float | None = None
    speed: float | None = None
    heading: float | None = None

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            altitude=data.get("altitude"),
            speed=data.get("speed"),
            heading=data.get("heading"),
        )

    def present_fields(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


TELEMETRY_FIELDS = tuple(f.name for f in fields(PositionUpdate))


@dataclass(frozen=True)
class Flight:
    flight_number: str
    airline: str
    departure_airport: str
    arrival_airport: str
    departure_time: datetime
    arrival_time: datetime
    status: FlightStatus
    gate: str | None = None
    terminal: str | None = None
    aircraft: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    altitude: float | None = None
    speed: float | None = None
    heading: float | None = None
    delay: int | None = None

    @property
    def is_active(self) -> bool:
        return self.status == FlightStatus.ACTIVE

    @property
    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            flight_number=data["flight_number"],
            airline=data.get("airline") or "",
            departure_airport=data["departure_airport"],
            arrival_airport=data["arrival_airport"],
            departure_time=parse_instant(data.get("departure_time")),
            arrival_time=parse_instant(data.get("arrival_time")),
            status=FlightStatus(str(data.get("status") or FlightStatus.SCHEDULED.value).upper()),
            gate=data.get("gate"),
            terminal=data.get("terminal"),
            aircraft=data.get("aircraft"),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            altitude=data.get("altitude"),
            speed=data.get("speed"),
            heading=data.get("heading"),
            delay=data.get("delay"),
        )

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["status"] = self.status.value
        payload["departure_time"] = format_instant(self.departure_time)
        payload["arrival_time"] = format_instant(self.arrival_time)
        return payload


def merge_position(flight: Flight, update: PositionUpdate) -> Flight:
    """Overwrite the telemetry fields present in ``update``; keep everything else."""
    changes = update.present_fields()
    if not changes:
        return flight
    return replace(flight, **changes)


@dataclass(frozen=True)
class Airport:
    code: str
    name: str
    city: str
    country: str
    latitude: float
    longitude: float
    timezone: str | None = None

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            code=data["code"],
            name=data.get("name") or "",
            city=data.get("city") or "",
            country=data.get("country") or "",
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            timezone=data.get("timezone"),
        )


@dataclass(frozen=True)
class MapRegion:
    latitude: float
    longitude: float
    latitude_delta: float
    longitude_delta: float


@dataclass
class Notification:
    id: str
    title: str
    message: str
    timestamp: int
    read: bool = False
    flight_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            message=data.get("message") or "",
            timestamp=int(data.get("timestamp") or 0),
            read=bool(data.get("read")),
            flight_id=data.get("flight_id"),
        )


@dataclass(frozen=True)
class SearchQuery:
    kind: str
    query: str
