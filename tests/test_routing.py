"""Tests for the OSRM route client."""

from unittest.mock import patch

import pytest
import requests

from conftest import http_response
from livemap.errors import RouteError
from livemap.models import Coordinate
from livemap.routing import OSRMClient, parse_route

ORIGIN = Coordinate(23.0, 90.0)
DESTINATION = Coordinate(23.5, 90.5)


def test_route_url_is_longitude_first():
    client = OSRMClient(base_url="https://osrm.example/")
    assert client.route_url(ORIGIN, DESTINATION) == (
        "https://osrm.example/route/v1/driving/90.0,23.0;90.5,23.5"
        "?overview=full&geometries=geojson"
    )


def test_parse_route_reorders_and_keeps_summary():
    body = {"routes": [{
        "geometry": {"coordinates": [[90.0, 23.0], [90.1, 23.1]]},
        "distance": 15234.5,
        "duration": 1260.0,
    }]}
    route = parse_route(body)
    assert route.points == (Coordinate(23.0, 90.0), Coordinate(23.1, 90.1))
    assert route.distance == 15234.5
    assert route.duration == 1260.0
    assert route.fallback is False


@pytest.mark.parametrize("body", [
    {},
    {"routes": []},
    {"routes": [{}]},
    {"routes": [{"geometry": None}]},
    {"routes": [{"geometry": {"coordinates": []}}]},
    {"routes": [{"geometry": {"coordinates": [[90.0]]}}]},
    {"routes": [{"geometry": {"coordinates": [["east", "north"]]}}]},
    {"code": "NoRoute", "routes": None},
    [],
])
def test_unusable_responses_raise(body):
    with pytest.raises(RouteError):
        parse_route(body)


def test_client_success():
    payload = {"routes": [{"geometry": {"coordinates": [[90.0, 23.0], [90.5, 23.5]]}}]}
    with patch("livemap.routing.requests.get", return_value=http_response(200, payload)) as get:
        route = OSRMClient().route(ORIGIN, DESTINATION)

    assert route.points == (ORIGIN, DESTINATION)
    assert "/route/v1/driving/90.0,23.0;90.5,23.5" in get.call_args[0][0]


def test_client_http_error():
    with patch("livemap.routing.requests.get", return_value=http_response(502)):
        with pytest.raises(RouteError, match="OSRM HTTP 502"):
            OSRMClient().route(ORIGIN, DESTINATION)


def test_client_network_error():
    with patch("livemap.routing.requests.get", side_effect=requests.Timeout("slow")):
        with pytest.raises(RouteError, match="slow"):
            OSRMClient().route(ORIGIN, DESTINATION)
