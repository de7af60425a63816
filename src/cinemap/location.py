"""Device location lookup with default-region fallback.

The platform's geolocation service is a collaborator; this module only
defines the contract it must satisfy and how its failures degrade.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from cinemap.theatres.models import Location

logger = logging.getLogger(__name__)

# Hong Kong
DEFAULT_LOCATION = Location(22.3193, 114.1694)

SERVICES_DISABLED_WARNING = (
    "Location services are disabled. Please enable them in your device settings."
)
PERMISSION_DENIED_WARNING = "Location permission denied. Using default location."
UNAVAILABLE_WARNING = "Could not determine your location. Using default location."


class LocationProvider(Protocol):
    async def services_enabled(self) -> bool: ...

    async def request_permission(self) -> bool: ...

    async def current_position(self) -> Location: ...


@dataclass(frozen=True)
class LocationFix:
    location: Location
    warning: str | None = None
    is_default: bool = False


async def resolve_location(
    provider: LocationProvider,
    default: Location = DEFAULT_LOCATION,
) -> LocationFix:
    """Return the device position, or ``default`` with a user-facing warning."""
    try:
        if not await provider.services_enabled():
            logger.warning("Location services disabled, using default region")
            return LocationFix(default, SERVICES_DISABLED_WARNING, is_default=True)

        if not await provider.request_permission():
            logger.warning("Location permission denied, using default region")
            return LocationFix(default, PERMISSION_DENIED_WARNING, is_default=True)

        position = await provider.current_position()
    except Exception:
        logger.exception("Error getting location")
        return LocationFix(default, UNAVAILABLE_WARNING, is_default=True)

    logger.info("Got location: %.5f, %.5f", position.latitude, position.longitude)
    return LocationFix(position)
