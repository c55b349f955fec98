"""Exceptions raised by the remote lookups."""


class LiveMapError(Exception):
    pass


class SearchError(LiveMapError):
    """Geocoding request failed"""


class RouteError(LiveMapError):
    """Routing request failed or returned no usable route"""
