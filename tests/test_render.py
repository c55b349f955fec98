"""Tests for the render projection and HTML export."""

from livemap.models import Coordinate, ErrorBanner, MapView, PlaceResult, Route, SessionState
from livemap.render import FALLBACK_ROUTE_COLOR, ROUTE_COLOR, render_layers, save_html


def make_state(**kwargs):
    return SessionState(view=MapView(Coordinate(23.0, 90.0), 16), **kwargs)


def test_empty_state_draws_nothing():
    layers = render_layers(make_state())
    assert layers["polylines"] == []
    assert layers["markers"] == []
    assert layers["banner"] is None
    assert layers["center"] == [23.0, 90.0]


def test_single_point_trail_is_not_drawn():
    layers = render_layers(make_state(trail=[Coordinate(23.0, 90.0)], current_location=Coordinate(23.0, 90.0)))
    assert layers["polylines"] == []
    assert [m["name"] for m in layers["markers"]] == ["me"]


def test_trail_route_and_markers():
    state = make_state(
        current_location=Coordinate(23.01, 90.01),
        trail=[Coordinate(23.0, 90.0), Coordinate(23.01, 90.01)],
        selected_destination=Coordinate(23.5, 90.5),
        route=Route(points=(Coordinate(23.01, 90.01), Coordinate(23.5, 90.5)), distance=5000.0),
        search_results=[PlaceResult("X", Coordinate(23.5, 90.5))],
    )
    layers = render_layers(state)
    assert [p["name"] for p in layers["polylines"]] == ["trail", "route"]
    assert layers["polylines"][1]["color"] == ROUTE_COLOR
    assert [m["name"] for m in layers["markers"]] == ["me", "destination"]
    assert layers["results"] == [{"name": "X", "lat": 23.5, "lon": 90.5}]
    assert layers["route"]["distance"] == 5000.0


def test_fallback_route_is_dashed():
    state = make_state(route=Route(points=(Coordinate(23.0, 90.0), Coordinate(23.5, 90.5)), fallback=True))
    route = render_layers(state)["polylines"][0]
    assert route["dashed"] is True
    assert route["color"] == FALLBACK_ROUTE_COLOR


def test_save_html(tmp_path):
    state = make_state(
        current_location=Coordinate(23.0, 90.0),
        selected_destination=Coordinate(23.5, 90.5),
        route=Route(points=(Coordinate(23.0, 90.0), Coordinate(23.5, 90.5))),
        error=ErrorBanner("route", "Route build error: <timeout>"),
    )
    path = save_html(state, str(tmp_path / "map.html"))
    html = open(path).read()
    assert "leaflet" in html.lower()
    assert "Route build error: &lt;timeout&gt;" in html
