"""Tests for the location permission gate."""

from conftest import FakeSource
from livemap.gps import (
    LocationPermission,
    LocationServiceDisabledError,
    PermissionDefinitionsNotFoundError,
)
from livemap.permissions import (
    PERMISSION_DENIED,
    PERMISSIONS_UNDECLARED,
    SERVICE_DISABLED,
    ensure_location_permission,
)


class RaisingSource(FakeSource):
    def __init__(self, error):
        super().__init__()
        self.error = error

    def check_permission(self):
        raise self.error


def test_granted():
    result = ensure_location_permission(FakeSource())
    assert result.granted
    assert result.error is None


def test_service_disabled_is_checked_first():
    source = FakeSource(service_enabled=False, permission=LocationPermission.DENIED)
    result = ensure_location_permission(source)
    assert not result.granted
    assert result.error == SERVICE_DISABLED
    assert source.request_calls == 0


def test_undetermined_permission_is_requested():
    source = FakeSource(permission=LocationPermission.DENIED, requested=LocationPermission.WHILE_IN_USE)
    result = ensure_location_permission(source)
    assert result.granted
    assert source.request_calls == 1


def test_request_refused():
    source = FakeSource(permission=LocationPermission.DENIED)
    result = ensure_location_permission(source)
    assert result.error == PERMISSION_DENIED


def test_denied_forever_is_not_requested_again():
    source = FakeSource(permission=LocationPermission.DENIED_FOREVER)
    result = ensure_location_permission(source)
    assert result.error == PERMISSION_DENIED
    assert source.request_calls == 0


def test_missing_declaration_names_both_capabilities():
    result = ensure_location_permission(RaisingSource(PermissionDefinitionsNotFoundError("no manifest")))
    assert result.error == PERMISSIONS_UNDECLARED
    assert "ACCESS_FINE_LOCATION" in result.error
    assert "ACCESS_COARSE_LOCATION" in result.error


def test_service_disabled_exception():
    result = ensure_location_permission(RaisingSource(LocationServiceDisabledError()))
    assert result.error == SERVICE_DISABLED


def test_unexpected_failure_embeds_cause():
    result = ensure_location_permission(RaisingSource(RuntimeError("boom")))
    assert not result.granted
    assert result.error == "Location permission error: boom"
