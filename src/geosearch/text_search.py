"""
Structured text search.

Collects the form fields (business name, sector, the location hierarchy,
postcode, filters) and runs one search against the API.
"""

import logging
from dataclasses import dataclass

from .config import TextSearchConfig
from .gateway import GatewayError, SearchGateway
from .models import LocationCriteria, SearchCriteria, SortBy
from .store import SearchStore

logger = logging.getLogger(__name__)

TEXT_SEARCH_ERROR = "Search failed. Please try again."


def _clean(value: str | None) -> str | None:
    """Blank input means unconstrained."""
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass
class TextSearchForm:
    """Current values of the text search form."""

    business_name: str = ""
    sector: str = ""
    country: str = ""
    region: str = ""
    city: str = ""
    street: str = ""
    postcode: str = ""
    rewards_only: bool = False
    campaigns_only: bool = False
    distance: float | None = None  # miles


class TextSearchOrchestrator:
    """Builds criteria from the form and drives text searches."""

    def __init__(
        self,
        store: SearchStore,
        gateway: SearchGateway,
        config: TextSearchConfig | None = None,
    ):
        self.store = store
        self.gateway = gateway
        self.config = config or TextSearchConfig()
        self.form = TextSearchForm()

    def build_criteria(self) -> SearchCriteria:
        """Snapshot the form as search criteria. Blank fields are left unset."""
        form = self.form
        return SearchCriteria(
            business_name=_clean(form.business_name),
            sector=_clean(form.sector),
            location=LocationCriteria(
                country=_clean(form.country),
                region=_clean(form.region),
                city=_clean(form.city),
                street=_clean(form.street),
                postcode=_clean(form.postcode),
            ),
            rewards_only=form.rewards_only,
            campaigns_only=form.campaigns_only,
            distance=form.distance,
            sort_by=SortBy.DISTANCE,
            page=1,
            page_size=self.config.page_size,
        )

    async def search(self) -> bool:
        """
        Run a search with the current form values.

        Returns True if results were applied to the store. A failure clears
        previous results; a superseded response is dropped.
        """
        criteria = self.build_criteria()
        self.store.set_criteria(criteria)
        token = self.store.begin_search()
        logger.info(f"Text search {token}: {criteria.filter_dict()}")

        try:
            result = await self.gateway.search_text(criteria, page=1)
        except GatewayError as e:
            logger.warning(f"Text search {token} failed: {e}")
            self.store.fail_search(token, TEXT_SEARCH_ERROR)
            return False

        applied = self.store.complete_search(token, result)
        if applied:
            logger.info(f"Text search {token}: {result.total_count} result(s)")
        return applied
