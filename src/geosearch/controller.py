"""
Geo-search controller.

Owns the shared store, the gateway, the per-field autocomplete engines and
both search orchestrators. The text and map panels read the same store,
so switching mode leaves the last results visible until the next search
completes.
"""

import logging

from .autocomplete import AutocompleteEngine
from .config import GeoSearchConfig
from .gateway import SearchGateway
from .location import LocationProvider, StaticLocationProvider
from .map_search import MapSearchOrchestrator
from .models import SearchMode
from .presentation import ResultView, render_results, result_view
from .store import SearchState, SearchStore
from .submissions import SubmissionReporter
from .text_search import TextSearchOrchestrator

logger = logging.getLogger(__name__)


class GeoSearchController:
    """Wires the geo-search components together around one store."""

    def __init__(
        self,
        config: GeoSearchConfig | None = None,
        gateway: SearchGateway | None = None,
        location_provider: LocationProvider | None = None,
    ):
        self.config = config or GeoSearchConfig()
        self.gateway = gateway or SearchGateway(self.config.gateway)
        self.store = SearchStore()
        self.reporter = SubmissionReporter(self.gateway, self.config.submissions)
        self.autocomplete = AutocompleteEngine(
            self.gateway, self.config.autocomplete, self.reporter
        )
        self.text = TextSearchOrchestrator(self.store, self.gateway, self.config.text)
        self.map = MapSearchOrchestrator(
            self.store,
            self.gateway,
            location_provider or StaticLocationProvider(),
            self.config.map,
        )

    @property
    def state(self) -> SearchState:
        return self.store.state

    @property
    def mode(self) -> SearchMode:
        return self.store.state.mode

    def set_mode(self, mode: SearchMode) -> None:
        """Switch panel. Results stay visible until the next search completes."""
        if mode != self.store.state.mode:
            logger.debug(f"Switching search mode to {mode.value}")
        self.store.set_mode(mode)

    async def search_text(self) -> bool:
        """Run a text search with the current form values."""
        self.set_mode(SearchMode.TEXT)
        return await self.text.search()

    async def search_map(self) -> bool:
        """
        Search the area around the device position.

        Mounts the map panel first if needed. Returns False without a
        request when no position can be resolved.
        """
        self.set_mode(SearchMode.MAP)
        await self.map.mount()
        if not self.map.can_search:
            logger.info(f"Map search unavailable: {self.map.status.value}")
            return False
        return await self.map.search_this_area(self.text.build_criteria())

    def view(self) -> ResultView:
        return result_view(self.store.state)

    def render(self) -> str:
        return render_results(self.store.state)

    async def close(self) -> None:
        """Stop autocomplete timers and wait for in-flight lookups."""
        self.autocomplete.close()
        await self.autocomplete.wait_idle()
