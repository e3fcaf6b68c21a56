"""
Search API client for geo-search.

Maps the text search, map search, suggestion and user-submission
endpoints onto typed calls. Every endpoint answers with the envelope
{success, data?, error?}; transport failures are folded into that
envelope before the typed operations see them.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from .config import GatewayConfig
from .models import (
    AUTOCOMPLETE_FIELDS,
    AutocompleteSuggestion,
    FieldType,
    MapBounds,
    SearchCriteria,
    SearchResult,
    SubmissionReceipt,
    UserSubmittedEntry,
)

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2


class GatewayError(Exception):
    """An API call completed without a usable result."""


@dataclass
class ApiResponse:
    """The response envelope shared by all endpoints."""

    success: bool
    data: Any = None
    error: str | None = None

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ApiResponse":
        return cls(
            success=bool(payload.get("success")),
            data=payload.get("data"),
            error=payload.get("error"),
        )


class SearchGateway:
    """
    Client for the search API.

    Stateless: each call opens its own HTTP client.
    """

    def __init__(
        self,
        config: GatewayConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the gateway.

        Args:
            config: Connection configuration (base URL, environment, timeout)
            transport: Optional httpx transport (for testing)
        """
        self.config = config or GatewayConfig()
        self.base_url = self.config.resolve_base_url()
        self.timeout = self.config.timeout_seconds
        self._transport = transport

    async def _call(
        self,
        endpoint: str,
        body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> ApiResponse:
        """
        Issue a request and return its envelope.

        POST when a body is given, GET otherwise. Never raises for
        network or decoding problems.
        """
        url = f"{self.base_url}{endpoint}"
        headers = {"Content-Type": "application/json"}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                if body is None:
                    response = await client.get(url, params=params, headers=headers)
                else:
                    response = await client.post(url, json=body, headers=headers)
                payload = response.json()
        except httpx.HTTPError as e:
            logger.warning(f"API error calling {endpoint}: {e!r}")
            return ApiResponse(success=False, error=str(e) or "Network error")
        except ValueError:
            logger.warning(f"Non-JSON response from {endpoint}")
            return ApiResponse(success=False, error="Invalid response from server")

        if not isinstance(payload, dict) or "success" not in payload:
            logger.warning(f"Unexpected response shape from {endpoint}: {payload!r}")
            return ApiResponse(
                success=False,
                error=f"Unexpected response from server (HTTP {response.status_code})",
            )

        return ApiResponse.from_dict(payload)

    async def search_text(self, criteria: SearchCriteria, page: int = 1) -> SearchResult:
        """
        Run a structured text search.

        POST /search/text

        Raises:
            GatewayError: If the search did not succeed
        """
        body = criteria.to_dict()
        body["page"] = page
        body["pageSize"] = criteria.page_size

        logger.debug(f"Text search page {page}: {body}")
        response = await self._call("/search/text", body=body)
        return self._parse_search_result(response, "Search failed")

    async def search_map(
        self,
        bounds: MapBounds,
        criteria: SearchCriteria | None = None,
    ) -> SearchResult:
        """
        Run a search restricted to a bounding box.

        POST /search/map

        Raises:
            GatewayError: If the search did not succeed
        """
        body: dict[str, Any] = {"bounds": bounds.to_dict()}
        if criteria is not None:
            body.update(criteria.filter_dict())

        logger.debug(f"Map search: {body}")
        response = await self._call("/search/map", body=body)
        return self._parse_search_result(response, "Map search failed")

    async def fetch_suggestions(
        self,
        field_type: FieldType,
        query: str,
    ) -> list[AutocompleteSuggestion]:
        """
        Fetch autocomplete suggestions for a field.

        GET /suggestions/{fieldType}?query={text}

        Queries shorter than two characters return [] without a request.

        Raises:
            GatewayError: If the lookup did not succeed
        """
        if field_type not in AUTOCOMPLETE_FIELDS:
            raise ValueError(f"No suggestions for field type {field_type.value}")
        if len(query) < MIN_QUERY_LENGTH:
            return []

        response = await self._call(
            f"/suggestions/{field_type.value}", params={"query": query}
        )
        if not response.success or response.data is None:
            raise GatewayError(response.error or "Failed to fetch suggestions")

        try:
            return [
                AutocompleteSuggestion.from_dict(item, field_type)
                for item in response.data.get("suggestions", [])
            ]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise GatewayError(f"Malformed suggestions payload: {e}") from e

    async def submit_user_entry(self, entry: UserSubmittedEntry) -> SubmissionReceipt:
        """
        Queue a user-entered value for moderation.

        POST /user-submissions

        Raises:
            GatewayError: If the submission was not accepted
        """
        response = await self._call("/user-submissions", body=entry.to_request())
        if not response.success or response.data is None:
            raise GatewayError(response.error or "Submission failed")

        try:
            return SubmissionReceipt.from_dict(response.data)
        except (KeyError, TypeError, ValueError) as e:
            raise GatewayError(f"Malformed submission receipt: {e}") from e

    def _parse_search_result(self, response: ApiResponse, default_error: str) -> SearchResult:
        """Unwrap a search envelope."""
        if not response.success or response.data is None:
            raise GatewayError(response.error or default_error)

        try:
            return SearchResult.from_dict(response.data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise GatewayError(f"Malformed search result: {e}") from e
