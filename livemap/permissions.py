"""Location permission gate."""

from dataclasses import dataclass
from typing import Optional

from .gps import (
    LocationPermission,
    LocationServiceDisabledError,
    PermissionDefinitionsNotFoundError,
)

SERVICE_DISABLED = "Location service is off.\nTurn on GPS and try again."
PERMISSION_DENIED = "Location permission denied.\nAllow location access in the app settings."
PERMISSIONS_UNDECLARED = (
    "Location permissions are not declared for this app.\n"
    "Declare both capabilities:\n"
    "android.permission.ACCESS_FINE_LOCATION\n"
    "android.permission.ACCESS_COARSE_LOCATION\n"
    "(on Termux, install the Termux:API package and app)"
)


@dataclass(frozen=True)
class PermissionResult:
    granted: bool
    error: Optional[str] = None


def ensure_location_permission(source) -> PermissionResult:
    """Check service availability and permission, requesting it if undetermined.

    Never raises; every failure is mapped to a user-facing message.
    """
    try:
        if not source.is_location_service_enabled():
            return PermissionResult(False, SERVICE_DISABLED)

        permission = source.check_permission()
        if permission == LocationPermission.DENIED:
            permission = source.request_permission()

        if permission in (LocationPermission.DENIED, LocationPermission.DENIED_FOREVER):
            return PermissionResult(False, PERMISSION_DENIED)

        return PermissionResult(True)
    except PermissionDefinitionsNotFoundError:
        return PermissionResult(False, PERMISSIONS_UNDECLARED)
    except LocationServiceDisabledError:
        return PermissionResult(False, SERVICE_DISABLED)
    except Exception as e:
        return PermissionResult(False, f"Location permission error: {e}")
