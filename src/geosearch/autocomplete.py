"""
Autocomplete for the free-text search fields.

Each field debounces typing, sends at most one suggestion request per
pause, and ignores responses that belong to a query the user has since
replaced. On blur, a value that matches none of the suggestions is
reported as a new entry for moderation.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

from .config import AutocompleteConfig
from .gateway import GatewayError, SearchGateway
from .models import (
    AUTOCOMPLETE_FIELDS,
    AutocompleteSuggestion,
    FieldType,
    SubmissionReceipt,
)
from .submissions import SubmissionReporter, is_new_entry

logger = logging.getLogger(__name__)

FETCH_ERROR_MESSAGE = "Failed to fetch suggestions"

_END_OF_STREAM = object()


@dataclass(frozen=True)
class SuggestionSnapshot:
    """The suggestion list for a field after an accepted response."""

    field_type: FieldType
    query: str
    suggestions: tuple[AutocompleteSuggestion, ...]
    error: str | None = None


class FieldAutocomplete:
    """
    Suggestion state for one input field.

    Must be driven from a running event loop. Every call to update() bumps
    a generation counter; a response is applied only if it was requested
    under the latest generation.
    """

    def __init__(
        self,
        field_type: FieldType,
        gateway: SearchGateway,
        config: AutocompleteConfig | None = None,
        reporter: SubmissionReporter | None = None,
    ):
        if field_type not in AUTOCOMPLETE_FIELDS:
            raise ValueError(f"{field_type.value} does not support autocomplete")
        self.field_type = field_type
        self.gateway = gateway
        self.config = config or AutocompleteConfig()
        self.reporter = reporter

        self.value = ""
        self.suggestions: list[AutocompleteSuggestion] = []
        self.loading = False
        self.error: str | None = None

        self._generation = 0
        self._timer: asyncio.Task | None = None
        self._requests: set[asyncio.Task] = set()
        # Created by stream(); responses before that are not buffered
        self._snapshots: asyncio.Queue[Any] | None = None
        self._closed = False

    def update(self, query: str) -> None:
        """Record a keystroke and (re)arm the debounce timer."""
        self.value = query
        self._generation += 1
        self._cancel_timer()

        if len(query) < self.config.min_query_length:
            self.suggestions = []
            self.loading = False
            self.error = None
            return

        self._timer = asyncio.get_running_loop().create_task(
            self._debounce(query, self._generation)
        )

    def select(self, suggestion: AutocompleteSuggestion) -> None:
        """Take a suggestion's canonical value as the field value."""
        self.value = suggestion.value
        self._generation += 1
        self._cancel_timer()
        self.loading = False
        self.error = None

    async def blur(self, context: dict[str, Any] | None = None) -> SubmissionReceipt | None:
        """
        Handle the field losing focus.

        Waits a short grace period so a suggestion tap can land first, then
        reports the value as a new entry if nothing matches it. At most one
        submission per call; failures are logged and dropped.
        """
        await asyncio.sleep(self.config.blur_grace_seconds)

        value = self.value
        if not is_new_entry(value, self.suggestions):
            return None

        if self.reporter is None:
            logger.debug(f"New {self.field_type.value} entry {value!r} not reported (no reporter)")
            return None

        try:
            return await self.reporter.submit(self.field_type, value, context)
        except GatewayError as e:
            logger.warning(f"Could not submit new {self.field_type.value} entry {value!r}: {e}")
            return None

    def stream(self) -> AsyncIterator[SuggestionSnapshot]:
        """
        Snapshots of the suggestion list, one per accepted response.

        Only responses accepted after the first call are delivered. The
        stream can only be consumed once; it ends when close() is called.
        """
        if self._snapshots is not None:
            raise RuntimeError(f"Suggestion stream for {self.field_type.value} already consumed")
        self._snapshots = asyncio.Queue()
        if self._closed:
            self._snapshots.put_nowait(_END_OF_STREAM)
        return self._iter_snapshots(self._snapshots)

    async def _iter_snapshots(self, queue: asyncio.Queue) -> AsyncIterator[SuggestionSnapshot]:
        while True:
            item = await queue.get()
            if item is _END_OF_STREAM:
                return
            yield item

    def close(self) -> None:
        """Cancel any pending timer and end the stream. In-flight requests finish on their own."""
        self._cancel_timer()
        if not self._closed:
            self._closed = True
            if self._snapshots is not None:
                self._snapshots.put_nowait(_END_OF_STREAM)

    async def wait_idle(self) -> None:
        """Wait until no timer is armed and no request is outstanding."""
        while True:
            pending = [t for t in self._requests if not t.done()]
            if self._timer is not None and not self._timer.done():
                pending.append(self._timer)
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _debounce(self, query: str, generation: int) -> None:
        await asyncio.sleep(self.config.debounce_seconds)
        # Once fired, the request runs to completion in its own task
        request = asyncio.get_running_loop().create_task(self._fetch(query, generation))
        self._requests.add(request)
        request.add_done_callback(self._requests.discard)

    async def _fetch(self, query: str, generation: int) -> None:
        self.loading = True
        self.error = None
        logger.debug(f"Fetching {self.field_type.value} suggestions for {query!r}")

        try:
            results = await self.gateway.fetch_suggestions(self.field_type, query)
        except Exception as e:
            if generation != self._generation:
                logger.debug(f"Discarding stale {self.field_type.value} failure for {query!r}")
                return
            if isinstance(e, GatewayError):
                logger.warning(f"Suggestion lookup failed for {self.field_type.value}: {e}")
            else:
                logger.exception(f"Error fetching {self.field_type.value} suggestions")
            self.suggestions = []
            self.error = FETCH_ERROR_MESSAGE
            self.loading = False
            self._emit(query)
            return

        if generation != self._generation:
            logger.debug(f"Discarding stale {self.field_type.value} suggestions for {query!r}")
            return

        self.suggestions = list(results)
        self.loading = False
        self._emit(query)

    def _emit(self, query: str) -> None:
        if self._closed or self._snapshots is None:
            return
        self._snapshots.put_nowait(
            SuggestionSnapshot(
                field_type=self.field_type,
                query=query,
                suggestions=tuple(self.suggestions),
                error=self.error,
            )
        )


class AutocompleteEngine:
    """One FieldAutocomplete per autocomplete field type."""

    def __init__(
        self,
        gateway: SearchGateway,
        config: AutocompleteConfig | None = None,
        reporter: SubmissionReporter | None = None,
    ):
        self.config = config or AutocompleteConfig()
        self.fields: dict[FieldType, FieldAutocomplete] = {
            field_type: FieldAutocomplete(field_type, gateway, self.config, reporter)
            for field_type in AUTOCOMPLETE_FIELDS
        }

    def __getitem__(self, field_type: FieldType) -> FieldAutocomplete:
        return self.fields[field_type]

    def update(self, field_type: FieldType, query: str) -> None:
        self.fields[field_type].update(query)

    async def blur(
        self,
        field_type: FieldType,
        context: dict[str, Any] | None = None,
    ) -> SubmissionReceipt | None:
        return await self.fields[field_type].blur(context)

    async def wait_idle(self) -> None:
        await asyncio.gather(*(f.wait_idle() for f in self.fields.values()))

    def close(self) -> None:
        for f in self.fields.values():
            f.close()
