"""
Map search around the device's current position.

The panel asks for location permission once when mounted, resolves a
single position fix, and searches a square box around it on demand.
"""

import logging
from enum import Enum

from .config import MapSearchConfig
from .gateway import GatewayError, SearchGateway
from .location import LocationProvider
from .models import Coordinates, MapBounds, SearchCriteria
from .store import SearchStore

logger = logging.getLogger(__name__)

MAP_SEARCH_ERROR = "Map search failed. Please try again."
ENABLE_LOCATION_PROMPT = "Enable location to see map"


class MapSearchStatus(str, Enum):
    """Lifecycle of the map panel."""

    UNINITIALIZED = "uninitialized"
    REQUESTING_PERMISSION = "requesting_permission"
    PERMISSION_DENIED = "permission_denied"
    LOCATION_UNAVAILABLE = "location_unavailable"
    LOCATION_RESOLVED = "location_resolved"
    SEARCHING = "searching"
    RESULTS = "results"
    FAILED = "failed"


# States in which a centre is known and "search this area" is offered
SEARCHABLE_STATUSES = frozenset(
    {
        MapSearchStatus.LOCATION_RESOLVED,
        MapSearchStatus.SEARCHING,
        MapSearchStatus.RESULTS,
        MapSearchStatus.FAILED,
    }
)


class LocationNotResolvedError(RuntimeError):
    """Map search attempted without a resolved device position."""


class MapSearchOrchestrator:
    """Drives the map panel's state machine and its searches."""

    def __init__(
        self,
        store: SearchStore,
        gateway: SearchGateway,
        location_provider: LocationProvider,
        config: MapSearchConfig | None = None,
    ):
        self.store = store
        self.gateway = gateway
        self.location_provider = location_provider
        self.config = config or MapSearchConfig()
        self.status = MapSearchStatus.UNINITIALIZED
        self.center: Coordinates | None = None
        self._latest_token: int | None = None

    @property
    def can_search(self) -> bool:
        return self.status in SEARCHABLE_STATUSES

    async def mount(self) -> MapSearchStatus:
        """
        Ask for permission and resolve the position once.

        A denial or a failed fix leaves the panel showing the enable-location
        prompt; nothing is retried automatically.
        """
        if self.status != MapSearchStatus.UNINITIALIZED:
            return self.status

        self.status = MapSearchStatus.REQUESTING_PERMISSION
        granted = await self.location_provider.request_permission()
        if not granted:
            logger.info("Location permission denied")
            self.status = MapSearchStatus.PERMISSION_DENIED
            return self.status

        fix = await self.location_provider.get_current_location()
        if fix is None:
            logger.warning("Location permission granted but no position available")
            self.status = MapSearchStatus.LOCATION_UNAVAILABLE
            return self.status

        self.center = fix.coords
        self.status = MapSearchStatus.LOCATION_RESOLVED
        logger.info(f"Location resolved: {self.center.lat:.4f}, {self.center.lng:.4f}")
        return self.status

    def derive_bounds(self) -> MapBounds:
        """The search box around the resolved position."""
        if self.center is None:
            raise LocationNotResolvedError("No resolved location to search around")
        return MapBounds.around(self.center, self.config.half_width_degrees)

    async def search_this_area(self, criteria: SearchCriteria | None = None) -> bool:
        """
        Search the box around the current position.

        Optional criteria filters are merged into the request. Returns True
        if results were applied to the store.

        Raises:
            LocationNotResolvedError: If no position has been resolved
        """
        if not self.can_search:
            raise LocationNotResolvedError(
                f"Cannot search this area while {self.status.value}"
            )

        bounds = self.derive_bounds()
        self.status = MapSearchStatus.SEARCHING
        token = self.store.begin_search()
        self._latest_token = token
        logger.info(f"Map search {token}: {bounds.to_dict()}")

        try:
            result = await self.gateway.search_map(bounds, criteria)
        except GatewayError as e:
            logger.warning(f"Map search {token} failed: {e}")
            if self.store.fail_search(token, MAP_SEARCH_ERROR):
                self.status = MapSearchStatus.FAILED
            else:
                self._superseded(token)
            return False

        applied = self.store.complete_search(token, result)
        if applied:
            self.status = MapSearchStatus.RESULTS
            logger.info(f"Map search {token}: {result.total_count} result(s)")
        else:
            self._superseded(token)
        return applied

    def _superseded(self, token: int) -> None:
        # Stay SEARCHING while a newer map search is outstanding
        if token == self._latest_token:
            self.status = MapSearchStatus.LOCATION_RESOLVED

    def location_label(self) -> str:
        """Text shown above the map."""
        if self.center is None:
            return ENABLE_LOCATION_PROMPT
        return f"Your location: {self.center.lat:.4f}, {self.center.lng:.4f}"
