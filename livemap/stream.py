"""Continuous position stream over a polled location source."""

import threading
from typing import Callable, Optional

from .config import CONFIG
from .geo import haversine_distance
from .gps import PositionError
from .models import Location


class PositionStream:
    """Subscription delivering position fixes from a location source.

    A background thread polls the source. Fixes closer than `distance_filter`
    meters to the last delivered one are suppressed. Failed polls are reported
    through `on_error` and polling continues. After cancel() returns no
    callback is invoked again.
    """

    def __init__(self, source, on_position: Callable[[Location], None],
                 on_error: Callable[[Exception], None],
                 distance_filter: Optional[float] = None,
                 poll_interval: Optional[float] = None):
        self.source = source
        self.on_position = on_position
        self.on_error = on_error
        self.distance_filter = CONFIG["distance_filter"] if distance_filter is None else distance_filter
        self.poll_interval = poll_interval
        self.last_emitted: Optional[Location] = None
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def start(self):
        self._thread = threading.Thread(target=self._run, name="position-stream", daemon=True)
        self._thread.start()

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self.cancelled

    def _run(self):
        while not self._cancelled.is_set():
            if self.is_finished():
                break
            self.poll_once()
            self._cancelled.wait(self._next_interval())

    def _next_interval(self) -> float:
        if self.poll_interval is not None:
            return self.poll_interval
        if hasattr(self.source, "get_poll_interval"):
            return self.source.get_poll_interval()
        return CONFIG["gps_poll_interval"]

    def is_finished(self) -> bool:
        """True once a playback source has run out of entries"""
        return hasattr(self.source, "is_finished") and self.source.is_finished()

    def poll_once(self) -> bool:
        """Poll the source once; returns True if a fix was delivered"""
        if self._cancelled.is_set():
            return False
        try:
            location = self.source.get_location(timeout=CONFIG["gps_timeout"])
        except Exception as e:
            self._deliver(self.on_error, e)
            return False

        if location is None:
            self._deliver(self.on_error, PositionError(self.source.get_status()))
            return False

        if self.last_emitted and self.distance_filter > 0:
            moved = haversine_distance(
                self.last_emitted.lat, self.last_emitted.lon, location.lat, location.lon
            )
            if moved < self.distance_filter:
                return False

        self.last_emitted = location
        return self._deliver(self.on_position, location)

    def _deliver(self, callback: Callable, value) -> bool:
        with self._lock:
            if self._cancelled.is_set():
                return False
            callback(value)
            return True

    def cancel(self):
        """Release the subscription. Safe to call more than once."""
        with self._lock:
            self._cancelled.set()
