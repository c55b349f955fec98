"""LiveMap - live location tracking, place search and road routes on one map."""

from .config import CONFIG
from .models import Coordinate, Location, PlaceResult, MapView, Route, ErrorBanner, SessionState
from .errors import LiveMapError, SearchError, RouteError
from .logger import Logger
from .geo import haversine_distance
from .gps import (
    LocationPermission,
    LocationSource,
    GPS,
    FixedGPS,
    GPSRecorder,
    GPSPlayback,
    PositionError,
    LocationServiceDisabledError,
    PermissionDefinitionsNotFoundError,
)
from .permissions import PermissionResult, ensure_location_permission
from .stream import PositionStream
from .search import NominatimClient
from .routing import OSRMClient
from .session import MapSession
from .render import render_layers, build_map, save_html
from .live_view import LiveViewServer, WebSocketGPS
from .app import LiveMap
from .__main__ import main

__all__ = [
    "CONFIG",
    "Coordinate",
    "Location",
    "PlaceResult",
    "MapView",
    "Route",
    "ErrorBanner",
    "SessionState",
    "LiveMapError",
    "SearchError",
    "RouteError",
    "Logger",
    "haversine_distance",
    "LocationPermission",
    "LocationSource",
    "GPS",
    "FixedGPS",
    "GPSRecorder",
    "GPSPlayback",
    "PositionError",
    "LocationServiceDisabledError",
    "PermissionDefinitionsNotFoundError",
    "PermissionResult",
    "ensure_location_permission",
    "PositionStream",
    "NominatimClient",
    "OSRMClient",
    "MapSession",
    "render_layers",
    "build_map",
    "save_html",
    "LiveViewServer",
    "WebSocketGPS",
    "LiveMap",
    "main",
]
