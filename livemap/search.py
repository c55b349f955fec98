"""Place search via the Nominatim geocoding API."""

from typing import Optional

import requests

from .config import CONFIG
from .errors import SearchError
from .geo import parse_degrees, is_valid_coordinate
from .models import Coordinate, PlaceResult


def parse_places(data) -> list[PlaceResult]:
    """Turn a Nominatim JSON response into place candidates.

    Entries without a usable numeric lat/lon are dropped.
    """
    if not isinstance(data, list):
        return []

    results = []
    for item in data:
        if not isinstance(item, dict):
            continue
        lat = parse_degrees(item.get("lat"))
        lon = parse_degrees(item.get("lon"))
        if lat is None or lon is None or not is_valid_coordinate(lat, lon):
            continue
        name = item.get("display_name")
        name = str(name) if name not in (None, "") else "Unknown"
        results.append(PlaceResult(name=name, coord=Coordinate(lat, lon)))
    return results


class NominatimClient:
    """Free-text place search against OpenStreetMap Nominatim"""

    def __init__(self, url: Optional[str] = None, user_agent: Optional[str] = None,
                 limit: Optional[int] = None, timeout: Optional[float] = None):
        self.url = url or CONFIG["nominatim_url"]
        self.user_agent = user_agent or CONFIG["user_agent"]
        self.limit = limit or CONFIG["search_limit"]
        self.timeout = timeout or CONFIG["request_timeout"]

    def search(self, query: str) -> list[PlaceResult]:
        """Return up to `limit` ranked candidates for the query.

        Raises SearchError on transport, HTTP or decoding failures. An empty
        list means the service answered but nothing usable matched.
        """
        params = {"q": query, "format": "json", "limit": self.limit}
        headers = {"User-Agent": self.user_agent}

        try:
            response = requests.get(self.url, params=params, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise SearchError(str(e)) from e

        if response.status_code != 200:
            raise SearchError(f"HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise SearchError(f"Invalid response: {e}") from e

        return parse_places(data)
