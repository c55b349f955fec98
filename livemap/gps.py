"""Location sources: device GPS, fixed position, recording and playback."""

import json
import subprocess
import time
from datetime import datetime
from enum import Enum
from typing import Optional

from .config import CONFIG
from .geo import haversine_distance
from .models import Location


class LocationPermission(Enum):
    DENIED = "denied"
    DENIED_FOREVER = "denied_forever"
    WHILE_IN_USE = "while_in_use"
    ALWAYS = "always"


class PositionError(Exception):
    """A location source could not produce a fix"""


class LocationServiceDisabledError(Exception):
    """Location services are switched off on the device"""


class PermissionDefinitionsNotFoundError(Exception):
    """The platform has no location capability declared for this app"""


class LocationSource:
    """Base class for location sources.

    Sources are polled with get_location(); the permission methods default to
    an always-available source.
    """

    def __init__(self):
        self.last_location: Optional[Location] = None
        self.consecutive_failures = 0

    def is_location_service_enabled(self) -> bool:
        return True

    def check_permission(self) -> LocationPermission:
        return LocationPermission.WHILE_IN_USE

    def request_permission(self) -> LocationPermission:
        return self.check_permission()

    def get_location(self, timeout: int = 30) -> Optional[Location]:
        raise NotImplementedError

    def current_position(self, timeout: Optional[int] = None) -> Location:
        """One-shot fix, raising PositionError instead of returning None"""
        location = self.get_location(timeout or CONFIG["gps_timeout"])
        if location is None:
            raise PositionError(self.get_status())
        return location

    def get_status(self) -> str:
        if self.consecutive_failures == 0:
            return "OK"
        return f"{self.consecutive_failures} consecutive failures"


class GPS(LocationSource):
    """GPS access via Termux API"""

    def __init__(self):
        super().__init__()
        self.last_error: Optional[str] = None

    def _probe(self) -> subprocess.CompletedProcess:
        """Ask for the last known network fix; cheap way to surface service/permission state"""
        try:
            return subprocess.run(
                ["termux-location", "-p", "network", "-r", "last"],
                capture_output=True,
                text=True,
                timeout=CONFIG["permission_check_timeout"]
            )
        except FileNotFoundError:
            raise PermissionDefinitionsNotFoundError(
                "termux-location not found (install the Termux:API package and app)"
            )

    def is_location_service_enabled(self) -> bool:
        result = self._probe()
        if result.returncode != 0 and "disabled" in (result.stderr or "").lower():
            return False
        return True

    def check_permission(self) -> LocationPermission:
        # Termux:API shows the Android permission prompt itself on first use
        result = self._probe()
        if result.returncode != 0 and "permission" in (result.stderr or "").lower():
            return LocationPermission.DENIED
        return LocationPermission.WHILE_IN_USE

    def get_location(self, timeout: int = 30) -> Optional[Location]:
        """Get current location using termux-location"""
        try:
            result = subprocess.run(
                ["termux-location", "-p", "gps", "-r", "once"],
                capture_output=True,
                text=True,
                timeout=timeout
            )

            if result.returncode != 0:
                self.consecutive_failures += 1
                self.last_error = result.stderr.strip() if result.stderr else "unknown error"
                return None

            if not result.stdout or not result.stdout.strip():
                self.consecutive_failures += 1
                self.last_error = "empty response"
                return None

            data = json.loads(result.stdout)
            location = Location(
                lat=data["latitude"],
                lon=data["longitude"],
                accuracy=data.get("accuracy"),
                timestamp=time.time()
            )
            self.last_location = location
            self.consecutive_failures = 0
            self.last_error = None
            return location

        except subprocess.TimeoutExpired:
            self.consecutive_failures += 1
            self.last_error = f"timed out after {timeout}s"
            return None
        except (json.JSONDecodeError, KeyError) as e:
            self.consecutive_failures += 1
            self.last_error = f"bad termux-location output: {e}"
            return None
        except FileNotFoundError:
            self.consecutive_failures += 1
            self.last_error = "termux-location not found"
            return None

    def get_status(self) -> str:
        """Get GPS status string"""
        if self.consecutive_failures == 0:
            acc = f", accuracy {self.last_location.accuracy:.0f}m" if self.last_location and self.last_location.accuracy else ""
            return f"GPS OK{acc}"
        else:
            return f"GPS: {self.consecutive_failures} consecutive failures ({self.last_error})"


class FixedGPS(LocationSource):
    """Reports the same position on every poll (testing without a device)"""

    def __init__(self, lat: float, lon: float):
        super().__init__()
        self.lat = lat
        self.lon = lon

    def get_location(self, timeout: int = 30) -> Optional[Location]:
        location = Location(lat=self.lat, lon=self.lon, accuracy=0, timestamp=time.time())
        self.last_location = location
        return location

    def get_status(self) -> str:
        return f"Fixed location ({self.lat:.5f}, {self.lon:.5f})"


class GPSRecorder(LocationSource):
    """Records every poll of a wrapped source to a trace file.

    Besides the raw fix, each entry notes whether the fix can go on the map
    and how far it moved from the last kept fix, so the trace shows which
    polls the position stream's distance filter drops.
    """

    def __init__(self, gps: LocationSource, record_path: str,
                 distance_filter: Optional[float] = None):
        super().__init__()
        self.gps = gps
        self.record_path = record_path
        self.distance_filter = CONFIG["distance_filter"] if distance_filter is None else distance_filter
        self.trace: list[dict] = []
        self.start_time = time.time()
        self._kept: Optional[Location] = None

    def is_location_service_enabled(self) -> bool:
        return self.gps.is_location_service_enabled()

    def check_permission(self) -> LocationPermission:
        return self.gps.check_permission()

    def request_permission(self) -> LocationPermission:
        return self.gps.request_permission()

    def get_location(self, timeout: int = 30) -> Optional[Location]:
        location = self.gps.get_location(timeout)
        self.trace.append(self._entry(location))

        if location is None:
            self.consecutive_failures += 1
        else:
            self.consecutive_failures = 0
            self.last_location = location
        return location

    def _entry(self, location: Optional[Location]) -> dict:
        now = time.time()
        entry = {
            "elapsed": now - self.start_time,
            "timestamp": now,
            "location": location.to_dict() if location else None,
            "status": self.gps.get_status(),
            "error": None,
            "moved": None,
            "filtered": False,
        }

        if location is None:
            entry["error"] = getattr(self.gps, "last_error", None) or entry["status"]
            return entry

        try:
            location.coordinate
        except ValueError as e:
            entry["error"] = str(e)
            return entry

        if self._kept is not None:
            moved = haversine_distance(self._kept.lat, self._kept.lon, location.lat, location.lon)
            entry["moved"] = round(moved, 2)
            entry["filtered"] = self.distance_filter > 0 and moved < self.distance_filter
        if not entry["filtered"]:
            self._kept = location
        return entry

    def summary(self) -> dict:
        return {
            "polls": len(self.trace),
            "fixes": sum(1 for e in self.trace if e["error"] is None),
            "filtered": sum(1 for e in self.trace if e["filtered"]),
            "failures": sum(1 for e in self.trace if e["error"] is not None),
        }

    def get_status(self) -> str:
        return self.gps.get_status()

    def save(self):
        """Save trace to file"""
        with open(self.record_path, "w") as f:
            json.dump({
                "recorded_at": datetime.now().isoformat(),
                "distance_filter": self.distance_filter,
                "summary": self.summary(),
                "trace": self.trace
            }, f, indent=2)
        print(f"GPS trace saved to {self.record_path} ({len(self.trace)} entries)")


class GPSPlayback(LocationSource):
    """Plays back a recorded trace, including its failed polls"""

    def __init__(self, playback_path: str, speed: float = 1.0):
        super().__init__()
        self.playback_path = playback_path
        self.speed = speed
        self.index = 0
        self.last_error: Optional[str] = None

        with open(playback_path) as f:
            self.trace: list[dict] = json.load(f)["trace"]
        print(f"Loaded GPS trace from {playback_path} ({len(self.trace)} entries)")

    def get_location(self, timeout: int = 30) -> Optional[Location]:
        if self.index >= len(self.trace):
            return None

        entry = self.trace[self.index]
        self.index += 1

        if not entry["location"]:
            self.consecutive_failures += 1
            self.last_error = entry.get("error") or entry.get("status") or "no fix recorded"
            return None

        # Out-of-range fixes are replayed as recorded; the session rejects them
        location = Location.from_dict(entry["location"])
        self.last_location = location
        self.consecutive_failures = 0
        self.last_error = None
        return location

    def get_poll_interval(self) -> float:
        """Wait between polls, following the recorded timing scaled by speed"""
        if self.index <= 0 or self.index >= len(self.trace):
            return CONFIG["gps_poll_interval"] / self.speed

        delta = self.trace[self.index].get("elapsed", 0) - self.trace[self.index - 1].get("elapsed", 0)
        return max(0.1, min(delta / self.speed, 5.0))

    def is_finished(self) -> bool:
        return self.index >= len(self.trace)

    def get_status(self) -> str:
        progress = f"{self.index}/{len(self.trace)}"
        if self.consecutive_failures == 0:
            return f"Playback OK ({progress})"
        return f"Playback: {self.consecutive_failures} failures ({progress}): {self.last_error}"
