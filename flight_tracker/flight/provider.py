"""FlightRadar24 provider adapter."""

from types import SimpleNamespace

try:
    # Expected package for this project: FlightRadarAPI (module: FlightRadar24)
    from FlightRadar24.api import FlightRadar24API
except ModuleNotFoundError as exc:
    if exc.name == "FlightRadar24":
        raise ImportError(
            "Missing compatible FlightRadar24 client. Install `FlightRadarAPI` and remove `flightradar24` if present: "
            "`pip uninstall -y flightradar24 && pip install FlightRadarAPI`."
        ) from exc
    if exc.name == "bs4":
        raise ImportError(
            "Missing dependency `beautifulsoup4` required by `FlightRadarAPI`. "
            "Install it with: `pip install beautifulsoup4`."
        ) from exc
    raise


class FlightRadarProvider:
    """Small adapter around FlightRadar24 API client."""

    def __init__(self, fr_api: FlightRadar24API | None = None, search_limit: int = 20):
        self._client = fr_api or FlightRadar24API()
        self.search_limit = int(search_limit)

    def search(self, query: str) -> dict:
        return self._client.search(query, limit=self.search_limit) or {}

    def get_flight_details(self, fr24_id: str) -> dict:
        # The client only reads `.id` from the flight object it is given.
        return self._client.get_flight_details(SimpleNamespace(id=fr24_id)) or {}

    def get_airport_details(self, code: str) -> dict:
        return self._client.get_airport_details(code) or {}
