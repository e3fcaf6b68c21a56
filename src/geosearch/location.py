"""
Device location for map search.

The map search only needs two things from the device: permission, and a
single position fix. Anything that provides those can be plugged in.
"""

import logging
from dataclasses import dataclass
from math import asin, cos, radians, sin, sqrt
from typing import Protocol

from .models import Coordinates

logger = logging.getLogger(__name__)

# Earth's radius in miles
EARTH_RADIUS_MILES = 3958.8


@dataclass(frozen=True)
class LocationFix:
    """A single position reading."""

    coords: Coordinates
    accuracy: float | None = None  # metres
    timestamp: float | None = None  # epoch seconds


class LocationProvider(Protocol):
    """What the map search expects from the device."""

    async def request_permission(self) -> bool: ...

    async def get_current_location(self) -> LocationFix | None: ...


class StaticLocationProvider:
    """
    Location provider with a fixed position.

    Used by the command line runner, where there is no device to ask.
    Passing no position behaves like a device that refuses permission.
    """

    def __init__(self, coords: Coordinates | None = None, accuracy: float | None = None):
        self.coords = coords
        self.accuracy = accuracy

    async def request_permission(self) -> bool:
        granted = self.coords is not None
        logger.debug(f"Location permission {'granted' if granted else 'denied'}")
        return granted

    async def get_current_location(self) -> LocationFix | None:
        if self.coords is None:
            return None
        return LocationFix(coords=self.coords, accuracy=self.accuracy)


def haversine_miles(a: Coordinates, b: Coordinates) -> float:
    """
    Great-circle distance between two points using the Haversine formula.

    Returns:
        Distance in miles.
    """
    lat1, lng1, lat2, lng2 = map(radians, [a.lat, a.lng, b.lat, b.lng])

    dlat = lat2 - lat1
    dlng = lng2 - lng1

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_MILES * asin(sqrt(h))
