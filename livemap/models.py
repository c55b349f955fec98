"""Data classes for LiveMap."""

import math
from dataclasses import dataclass, field, asdict
from typing import Optional


@dataclass(frozen=True)
class Coordinate:
    """A latitude/longitude pair in degrees"""
    lat: float
    lon: float

    def __post_init__(self):
        if not (math.isfinite(self.lat) and math.isfinite(self.lon)):
            raise ValueError(f"Non-finite coordinate: ({self.lat}, {self.lon})")
        if not -90 <= self.lat <= 90:
            raise ValueError(f"Latitude out of range: {self.lat}")
        if not -180 <= self.lon <= 180:
            raise ValueError(f"Longitude out of range: {self.lon}")

    def to_list(self) -> list[float]:
        return [self.lat, self.lon]

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lon": self.lon}


@dataclass
class Location:
    """A raw fix reported by a location source"""
    lat: float
    lon: float
    accuracy: Optional[float] = None
    timestamp: Optional[float] = None

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lon)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "Location":
        return cls(**d)


@dataclass(frozen=True)
class PlaceResult:
    """A place candidate returned by the geocoder"""
    name: str
    coord: Coordinate

    def to_dict(self) -> dict:
        return {"name": self.name, **self.coord.to_dict()}


@dataclass(frozen=True)
class MapView:
    center: Coordinate
    zoom: float

    def to_dict(self) -> dict:
        return {"center": self.center.to_dict(), "zoom": self.zoom}


@dataclass(frozen=True)
class Route:
    """Road geometry from the current location to the destination.

    `fallback` marks the straight-line route used when routing failed.
    """
    points: tuple[Coordinate, ...]
    distance: Optional[float] = None  # meters
    duration: Optional[float] = None  # seconds
    fallback: bool = False

    def to_dict(self) -> dict:
        return {
            "points": [p.to_list() for p in self.points],
            "distance": self.distance,
            "duration": self.duration,
            "fallback": self.fallback,
        }


# Error banner categories
LOCATION = "location"
SEARCH = "search"
ROUTE = "route"


@dataclass(frozen=True)
class ErrorBanner:
    category: str
    text: str


@dataclass
class SessionState:
    """Everything the map screen shows, owned by MapSession"""
    view: MapView
    follow_mode: bool = True
    current_location: Optional[Coordinate] = None
    trail: list[Coordinate] = field(default_factory=list)
    search_results: list[PlaceResult] = field(default_factory=list)
    selected_destination: Optional[Coordinate] = None
    route: Optional[Route] = None
    error: Optional[ErrorBanner] = None
    searching: bool = False

    @property
    def route_geometry(self) -> list[Coordinate]:
        return list(self.route.points) if self.route else []

    @property
    def error_text(self) -> Optional[str]:
        return self.error.text if self.error else None

    def copy(self) -> "SessionState":
        """Detached copy whose sequences are tuples"""
        return SessionState(
            view=self.view,
            follow_mode=self.follow_mode,
            current_location=self.current_location,
            trail=tuple(self.trail),
            search_results=tuple(self.search_results),
            selected_destination=self.selected_destination,
            route=self.route,
            error=self.error,
            searching=self.searching,
        )

    def to_dict(self) -> dict:
        return {
            "view": self.view.to_dict(),
            "follow_mode": self.follow_mode,
            "location": self.current_location.to_dict() if self.current_location else None,
            "trail": [c.to_list() for c in self.trail],
            "search_results": [r.to_dict() for r in self.search_results],
            "destination": self.selected_destination.to_dict() if self.selected_destination else None,
            "route": self.route.to_dict() if self.route else None,
            "error": {"category": self.error.category, "text": self.error.text} if self.error else None,
            "searching": self.searching,
        }
