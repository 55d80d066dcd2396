"""Search input handling for the flight/airport search view."""

import re

from flight_tracker.errors import ValidationError
from flight_tracker.models import SearchQuery

SEARCH_KINDS = ("flight", "airport")
FLIGHT_QUERY_RE = re.compile(r"^[A-Z0-9]{2,8}$")


def parse_search(kind: str, text: str) -> SearchQuery:
    query = str(text or "").strip().upper()
    if not query:
        raise ValidationError("Please enter a flight number or airport code")
    kind = str(kind or "flight").lower()
    if kind not in SEARCH_KINDS:
        raise ValidationError(f"Unknown search type {kind!r}; expected 'flight' or 'airport'.")
    return SearchQuery(kind=kind, query=query)


def guess_search_kind(query: str) -> str:
    """Classify a recent search. Note three-letter airport codes also look like flights."""
    return "flight" if FLIGHT_QUERY_RE.match(str(query or "")) else "airport"


class RecentSearches:
    """Most recent distinct queries, newest first."""

    def __init__(self, limit: int = 5, initial=None):
        self.limit = max(1, int(limit))
        self._items = list(initial or [])[: self.limit]

    def add(self, query: str) -> list:
        if query not in self._items:
            self._items = [query] + self._items[: self.limit - 1]
        return self.items

    @property
    def items(self) -> list:
        return list(self._items)
