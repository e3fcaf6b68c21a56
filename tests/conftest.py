"""Shared pytest fixtures for geosearch tests."""

import asyncio
from typing import Any

import pytest

from geosearch.config import AutocompleteConfig
from geosearch.models import (
    AutocompleteSuggestion,
    Business,
    SearchResult,
    SuggestionType,
)


def business_payload(
    business_id: str = "biz-1",
    name: str = "Carrot Cake Bakery",
    sector: str = "Bakery",
    **overrides: Any,
) -> dict[str, Any]:
    """A business record as the search API returns it."""
    payload: dict[str, Any] = {
        "id": business_id,
        "name": name,
        "sector": sector,
        "location": {
            "country": "United Kingdom",
            "region": "North Yorkshire",
            "city": "Middlesbrough",
            "street": "Linthorpe Road",
            "postcode": "TS1 3LA",
            "coordinates": {"lat": 54.572, "lng": -1.237},
            "formattedAddress": "12 Linthorpe Road, Middlesbrough, TS1 3LA",
        },
        "rewardsPrograms": [],
        "campaigns": [],
        "status": "active",
    }
    payload.update(overrides)
    return payload


class ControlledGateway:
    """
    Stand-in gateway whose responses are released by the test.

    Each call records its arguments and waits on its own future, so a test
    can complete requests out of order.
    """

    def __init__(self):
        self.calls: list[tuple[str, tuple]] = []
        self.pending: list[asyncio.Future] = []

    async def _wait(self, name: str, *args):
        self.calls.append((name, args))
        future = asyncio.get_running_loop().create_future()
        self.pending.append(future)
        return await future

    async def fetch_suggestions(self, field_type, query):
        return await self._wait("fetch_suggestions", field_type, query)

    async def search_text(self, criteria, page=1):
        return await self._wait("search_text", criteria, page)

    async def search_map(self, bounds, criteria=None):
        return await self._wait("search_map", bounds, criteria)

    async def submit_user_entry(self, entry):
        return await self._wait("submit_user_entry", entry)

    def release(self, index: int, result=None, error: Exception | None = None) -> None:
        future = self.pending[index]
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)


async def settle() -> None:
    """Let callbacks scheduled by released futures run."""
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def make_business():
    """Factory for parsed Business records."""

    def _make(**kwargs) -> Business:
        return Business.from_dict(business_payload(**kwargs))

    return _make


@pytest.fixture
def make_result(make_business):
    """Factory for a SearchResult holding n businesses."""

    def _make(n: int = 1) -> SearchResult:
        businesses = tuple(
            make_business(business_id=f"biz-{i}", name=f"Business {i}") for i in range(n)
        )
        return SearchResult(results=businesses, total_count=n)

    return _make


@pytest.fixture
def verified():
    """Factory for verified suggestions."""

    def _make(value: str) -> AutocompleteSuggestion:
        return AutocompleteSuggestion(value=value, label=value, type=SuggestionType.VERIFIED)

    return _make


@pytest.fixture
def fast_config():
    """Autocomplete timings short enough for tests."""
    return AutocompleteConfig(debounce_ms=30, min_query_length=2, blur_grace_ms=10)


@pytest.fixture
def controlled_gateway():
    return ControlledGateway()


@pytest.fixture
def make_payload():
    """Factory for business records in wire form."""
    return business_payload


@pytest.fixture
def flush():
    """Awaitable that lets released responses be processed."""
    return settle
