"""Tests for data classes and geo helpers."""

import math

import pytest

from livemap.geo import haversine_distance, parse_degrees
from livemap.models import Coordinate, ErrorBanner, Location, MapView, PlaceResult, Route, SessionState


class TestCoordinate:
    def test_valid(self):
        c = Coordinate(-90, 180)
        assert c.to_list() == [-90, 180]

    @pytest.mark.parametrize("lat, lon", [
        (90.1, 0), (-91, 0), (0, 180.5), (0, -181), (math.nan, 0), (0, math.inf),
    ])
    def test_invalid(self, lat, lon):
        with pytest.raises(ValueError):
            Coordinate(lat, lon)

    def test_immutable(self):
        c = Coordinate(1, 2)
        with pytest.raises(AttributeError):
            c.lat = 3


def test_location_round_trip_and_coordinate():
    loc = Location(23.0, 90.0, accuracy=4.0, timestamp=100.0)
    assert Location.from_dict(loc.to_dict()) == loc
    assert loc.coordinate == Coordinate(23.0, 90.0)


def test_session_state_to_dict():
    state = SessionState(
        view=MapView(Coordinate(23.0, 90.0), 16),
        current_location=Coordinate(23.0, 90.0),
        trail=[Coordinate(23.0, 90.0)],
        search_results=[PlaceResult("X", Coordinate(23.5, 90.5))],
        selected_destination=Coordinate(23.5, 90.5),
        route=Route(points=(Coordinate(23.0, 90.0), Coordinate(23.5, 90.5)), fallback=True),
        error=ErrorBanner("route", "Route build error: OSRM HTTP 500"),
    )
    d = state.to_dict()
    assert d["location"] == {"lat": 23.0, "lon": 90.0}
    assert d["trail"] == [[23.0, 90.0]]
    assert d["search_results"] == [{"name": "X", "lat": 23.5, "lon": 90.5}]
    assert d["route"]["points"] == [[23.0, 90.0], [23.5, 90.5]]
    assert d["route"]["fallback"] is True
    assert d["error"] == {"category": "route", "text": "Route build error: OSRM HTTP 500"}
    assert state.error_text == "Route build error: OSRM HTTP 500"


def test_empty_state_has_no_route_geometry():
    state = SessionState(view=MapView(Coordinate(0, 0), 13))
    assert state.route_geometry == []
    assert state.error_text is None


def test_haversine_one_degree_latitude():
    assert haversine_distance(0, 0, 1, 0) == pytest.approx(111195, rel=1e-3)


@pytest.mark.parametrize("value, expected", [
    ("23.81", 23.81), (" 90.41 ", 90.41), (12, 12.0), (None, None), ("", None),
    ("abc", None), ("nan", None), ("inf", None), (True, None),
])
def test_parse_degrees(value, expected):
    assert parse_degrees(value) == expected
