"""Coordination core: live location, place search and route rebuilding."""

import queue
from typing import Callable, Optional

from .config import CONFIG
from .errors import RouteError, SearchError
from .events import (
    FollowToggled,
    PositionReceived,
    RebuildRequested,
    RecenterRequested,
    ResultSelected,
    SearchSubmitted,
    StreamFailed,
)
from .geo import haversine_distance
from .logger import Logger
from .models import (
    LOCATION,
    ROUTE,
    SEARCH,
    Coordinate,
    ErrorBanner,
    MapView,
    PlaceResult,
    Route,
    SessionState,
)
from .permissions import ensure_location_permission
from .routing import OSRMClient
from .search import NominatimClient
from .stream import PositionStream

NO_RESULTS = "No results found."


class MapSession:
    """Owns the map screen state and the rules that link its inputs.

    Every input is an event. post() may be called from any thread (the position
    stream and the live view do); process_pending() applies queued events one
    at a time on the calling thread, which is the only place state changes.
    Route rebuilds are themselves queued events, at most one pending at a
    time, and read the latest location and destination when they run.

    Readers get copies from snapshot(); listeners registered with
    add_listener() receive one after every handled event.
    """

    def __init__(self, source, search_client=None, route_client=None,
                 logger: Optional[Logger] = None, follow_mode: Optional[bool] = None,
                 stream_factory: Callable = PositionStream):
        self.source = source
        self.search_client = search_client or NominatimClient()
        self.route_client = route_client or OSRMClient()
        self.logger = logger or Logger()
        self.stream_factory = stream_factory

        self._state = SessionState(
            view=MapView(Coordinate(*CONFIG["initial_center"]), CONFIG["initial_zoom"]),
            follow_mode=CONFIG["follow_mode"] if follow_mode is None else follow_mode,
        )
        self._events: queue.Queue = queue.Queue()
        self._listeners: list[Callable[[SessionState], None]] = []
        self._subscription = None
        self._rebuild_pending = False
        self._disposed = False

        self._handlers = {
            PositionReceived: self._on_position,
            StreamFailed: self._on_stream_error,
            SearchSubmitted: self._on_search,
            ResultSelected: self._on_select,
            FollowToggled: self._on_follow_toggled,
            RecenterRequested: self._on_recenter,
            RebuildRequested: self._on_rebuild,
        }

    # ---------- public API ----------

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def stream_running(self) -> bool:
        return self._subscription is not None and self._subscription.is_running()

    def snapshot(self) -> SessionState:
        return self._state.copy()

    def add_listener(self, listener: Callable[[SessionState], None]):
        self._listeners.append(listener)

    def post(self, event):
        """Queue an event; safe from any thread, ignored after dispose()"""
        if self._disposed:
            return
        self._events.put(event)

    def search(self, query: str):
        if not query or not query.strip():
            return
        self.post(SearchSubmitted(query))

    def select_result(self, result: PlaceResult):
        self.post(ResultSelected(result))

    def toggle_follow(self, enabled: Optional[bool] = None):
        self.post(FollowToggled(enabled))

    def recenter(self):
        self.post(RecenterRequested())

    def process_pending(self, timeout: Optional[float] = None) -> int:
        """Handle queued events in order until the queue is empty.

        With a timeout, waits up to that long for the first event. Returns the
        number of events handled.
        """
        handled = 0
        try:
            event = self._events.get(block=timeout is not None, timeout=timeout)
            while True:
                self.handle(event)
                handled += 1
                event = self._events.get_nowait()
        except queue.Empty:
            pass
        return handled

    def handle(self, event):
        """Apply one event to the state"""
        if self._disposed:
            return
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unknown event: {event!r}")
        handler(event)
        self._notify()

    def start(self) -> bool:
        """Check permission, take a first fix, then subscribe to the position stream.

        Returns False when location is unavailable; the reason is in the
        error banner.
        """
        if self._disposed:
            return False

        result = ensure_location_permission(self.source)
        if not result.granted:
            self._set_error(LOCATION, result.error)
            self._notify()
            return False
        self._clear_error(LOCATION)

        try:
            current = self.source.current_position().coordinate
        except Exception as e:
            self._set_error(LOCATION, f"Could not get current location: {e}")
            self._notify()
            return False

        if self._disposed:
            return False

        self._state.current_location = current
        self._state.trail.append(current)
        self._state.view = MapView(current, CONFIG["focus_zoom"])
        self.logger.log("Current location", current.to_dict())

        if self._state.selected_destination is not None:
            self._request_rebuild()

        if self._subscription is not None:
            self._subscription.cancel()
        self._subscription = self.stream_factory(
            self.source,
            on_position=lambda location: self.post(PositionReceived(location)),
            on_error=lambda error: self.post(StreamFailed(error)),
            distance_filter=CONFIG["distance_filter"],
        )
        self._subscription.start()

        self._notify()
        return True

    def rebuild_route(self):
        """Fetch a road route from the current location to the destination.

        On failure the route falls back to a straight line and the error is
        shown.
        """
        if self._disposed:
            return
        origin = self._state.current_location
        destination = self._state.selected_destination
        if origin is None or destination is None:
            self._state.route = None
            return

        try:
            route = self.route_client.route(origin, destination)
        except RouteError as e:
            if self._disposed:
                return
            self._state.route = Route(
                points=(origin, destination),
                distance=haversine_distance(origin.lat, origin.lon, destination.lat, destination.lon),
                fallback=True,
            )
            self._set_error(ROUTE, f"Route build error: {e}")
            return

        if self._disposed:
            return
        self._state.route = route
        self._clear_error(ROUTE)
        self.logger.log("Route built", {
            "points": len(route.points),
            "distance": route.distance,
            "duration": route.duration,
        })

    def dispose(self):
        """Release the position subscription; nothing changes state afterwards"""
        if self._disposed:
            return
        self._disposed = True
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
        while True:
            try:
                self._events.get_nowait()
            except queue.Empty:
                break
        self.logger.log("Session disposed", {"trail_points": len(self._state.trail)})

    # ---------- handlers ----------

    def _on_position(self, event: PositionReceived):
        try:
            current = event.location.coordinate
        except ValueError as e:
            self._on_stream_error(StreamFailed(e))
            return

        self._state.current_location = current
        self._state.trail.append(current)
        # A usable fix means location works again
        self._clear_error(LOCATION)

        if self._state.selected_destination is not None:
            self._request_rebuild()

        if self._state.follow_mode:
            self._state.view = MapView(current, self._state.view.zoom)

    def _on_stream_error(self, event: StreamFailed):
        self._set_error(LOCATION, f"Realtime location stream error: {event.error}")

    def _on_search(self, event: SearchSubmitted):
        query = event.query.strip()
        if not query:
            return

        self._state.searching = True
        self._state.search_results = []
        self._state.error = None
        self._notify()
        self.logger.log("Searching", {"query": query})

        try:
            results = self.search_client.search(query)
        except SearchError as e:
            if self._disposed:
                return
            self._state.searching = False
            self._set_error(SEARCH, f"Search error: {e}")
            return

        if self._disposed:
            return

        if not results:
            self._state.search_results = []
            self._state.searching = False
            self._set_error(SEARCH, NO_RESULTS)
            return

        first = results[0]
        self._state.search_results = list(results)
        self._state.selected_destination = first.coord
        self._state.view = MapView(first.coord, CONFIG["focus_zoom"])
        self._state.searching = False
        self.logger.log("Search results", {"query": query, "count": len(results), "first": first.name})

        self._route_to_destination()

    def _on_select(self, event: ResultSelected):
        destination = event.result.coord
        self._state.selected_destination = destination
        self._state.view = MapView(destination, CONFIG["focus_zoom"])
        self._state.search_results = []
        self.logger.log("Destination selected", {"name": event.result.name, **destination.to_dict()})

        self._route_to_destination()

    def _on_follow_toggled(self, event: FollowToggled):
        enabled = not self._state.follow_mode if event.enabled is None else event.enabled
        self._state.follow_mode = enabled

    def _on_recenter(self, event: RecenterRequested):
        if self._state.current_location is None:
            return
        self._state.view = MapView(self._state.current_location, CONFIG["focus_zoom"])

    def _on_rebuild(self, event: RebuildRequested):
        self._rebuild_pending = False
        self.rebuild_route()

    # ---------- helpers ----------

    def _route_to_destination(self):
        if self._state.current_location is not None:
            self._request_rebuild()
        else:
            self._state.route = None

    def _request_rebuild(self):
        if self._rebuild_pending:
            return
        self._rebuild_pending = True
        self.post(RebuildRequested())

    def _set_error(self, category: str, text: str):
        self._state.error = ErrorBanner(category, text)
        self.logger.log(f"{category.capitalize()} error", {"message": text})

    def _clear_error(self, category: str):
        if self._state.error and self._state.error.category == category:
            self._state.error = None

    def _notify(self):
        if not self._listeners:
            return
        snapshot = self._state.copy()
        for listener in self._listeners:
            listener(snapshot)
