"""Shared fakes for LiveMap tests."""

from unittest.mock import MagicMock

import pytest

from livemap.errors import RouteError, SearchError
from livemap.gps import LocationPermission, LocationSource
from livemap.logger import Logger
from livemap.models import Coordinate, Location, Route
from livemap.session import MapSession


class FakeSource(LocationSource):
    """Location source replaying a fixed list of fixes (or exceptions)"""

    def __init__(self, fixes=None, service_enabled=True,
                 permission=LocationPermission.WHILE_IN_USE, requested=None):
        super().__init__()
        self.fixes = list(fixes or [])
        self.service_enabled = service_enabled
        self.permission = permission
        self.requested = requested
        self.request_calls = 0

    def is_location_service_enabled(self):
        return self.service_enabled

    def check_permission(self):
        return self.permission

    def request_permission(self):
        self.request_calls += 1
        return self.requested if self.requested is not None else self.permission

    def get_location(self, timeout=30):
        if not self.fixes:
            self.consecutive_failures += 1
            return None
        item = self.fixes.pop(0)
        if isinstance(item, Exception):
            raise item
        self.last_location = item
        return item


class FakeStream:
    """Stand-in for PositionStream; tests push fixes with emit()"""

    def __init__(self, source, on_position, on_error, distance_filter=None):
        self.source = source
        self.on_position = on_position
        self.on_error = on_error
        self.distance_filter = distance_filter
        self.started = False
        self.cancel_calls = 0

    def start(self):
        self.started = True

    def cancel(self):
        self.cancel_calls += 1

    def is_running(self):
        return self.started and self.cancel_calls == 0

    def emit(self, lat, lon):
        self.on_position(Location(lat=lat, lon=lon))

    def fail(self, error):
        self.on_error(error)


class FakeSearchClient:
    def __init__(self, results=None, error=None):
        self.results = results or []
        self.error = error
        self.queries = []

    def search(self, query):
        self.queries.append(query)
        if self.error:
            raise SearchError(self.error)
        return list(self.results)


class FakeRouteClient:
    def __init__(self, route=None, error=None):
        self.route_result = route
        self.error = error
        self.calls = []

    def route(self, origin, destination):
        self.calls.append((origin, destination))
        if self.error:
            raise RouteError(self.error)
        if self.route_result is not None:
            return self.route_result
        midpoint = Coordinate((origin.lat + destination.lat) / 2, (origin.lon + destination.lon) / 2)
        return Route(points=(origin, midpoint, destination), distance=1000.0, duration=120.0)


def http_response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


@pytest.fixture
def quiet_logger():
    return Logger(echo=False)


@pytest.fixture
def make_session(quiet_logger):
    """Build a MapSession with fakes; returns (session, streams)"""

    def _make(source=None, search_client=None, route_client=None, follow_mode=None):
        streams = []

        def stream_factory(*args, **kwargs):
            stream = FakeStream(*args, **kwargs)
            streams.append(stream)
            return stream

        session = MapSession(
            source if source is not None else FakeSource([Location(23.0, 90.0)]),
            search_client=search_client or FakeSearchClient(),
            route_client=route_client or FakeRouteClient(),
            logger=quiet_logger,
            follow_mode=follow_mode,
            stream_factory=stream_factory,
        )
        return session, streams

    return _make
