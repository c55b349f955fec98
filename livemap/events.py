"""Events consumed by MapSession."""

from dataclasses import dataclass
from typing import Optional

from .models import Location, PlaceResult


@dataclass(frozen=True)
class PositionReceived:
    location: Location


@dataclass(frozen=True)
class StreamFailed:
    error: Exception


@dataclass(frozen=True)
class SearchSubmitted:
    query: str


@dataclass(frozen=True)
class ResultSelected:
    result: PlaceResult


@dataclass(frozen=True)
class FollowToggled:
    enabled: Optional[bool] = None  # None flips the current mode


@dataclass(frozen=True)
class RecenterRequested:
    """Jump the view back to the device position"""


@dataclass(frozen=True)
class RebuildRequested:
    pass
