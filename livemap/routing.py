"""Road routing via the OSRM HTTP API."""

from typing import Optional

import requests

from .config import CONFIG
from .errors import RouteError
from .models import Coordinate, Route


def parse_route(body) -> Route:
    """Extract the first route from an OSRM response.

    OSRM GeoJSON coordinates are [lon, lat]; points come back lat-first.
    """
    if not isinstance(body, dict):
        raise RouteError("No route found")
    routes = body.get("routes")
    if not isinstance(routes, list) or not routes or not isinstance(routes[0], dict):
        raise RouteError("No route found")

    first = routes[0]
    geometry = first.get("geometry")
    if not isinstance(geometry, dict) or not isinstance(geometry.get("coordinates"), list):
        raise RouteError("No route found")

    points = []
    for pair in geometry["coordinates"]:
        try:
            lon, lat = float(pair[0]), float(pair[1])
            points.append(Coordinate(lat, lon))
        except (TypeError, ValueError, IndexError, KeyError) as e:
            raise RouteError(f"Malformed route geometry: {pair!r}") from e

    if not points:
        raise RouteError("Empty route geometry")

    return Route(
        points=tuple(points),
        distance=first.get("distance"),
        duration=first.get("duration"),
    )


class OSRMClient:
    """Road routes between two coordinates from an OSRM server"""

    def __init__(self, base_url: Optional[str] = None, profile: Optional[str] = None,
                 timeout: Optional[float] = None):
        self.base_url = (base_url or CONFIG["osrm_url"]).rstrip("/")
        self.profile = profile or CONFIG["osrm_profile"]
        self.timeout = timeout or CONFIG["request_timeout"]

    def route_url(self, origin: Coordinate, destination: Coordinate) -> str:
        return (
            f"{self.base_url}/route/v1/{self.profile}"
            f"/{origin.lon},{origin.lat};{destination.lon},{destination.lat}"
            "?overview=full&geometries=geojson"
        )

    def route(self, origin: Coordinate, destination: Coordinate) -> Route:
        """Full-detail road geometry from origin to destination. Raises RouteError."""
        try:
            response = requests.get(self.route_url(origin, destination), timeout=self.timeout)
        except requests.RequestException as e:
            raise RouteError(str(e)) from e

        if response.status_code != 200:
            raise RouteError(f"OSRM HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise RouteError(f"Invalid response: {e}") from e

        return parse_route(body)
