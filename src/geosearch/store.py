"""
Search state for geo-search.

One SearchState is shared by the text and map panels. Transitions are a
pure function of (state, action); SearchStore holds the current value
and tells subscribers when it changes.

Every search dispatched through begin_search gets a generation token.
A completion is applied only if its token is still the latest one, so a
slow response can never overwrite a newer search.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from .models import Business, SearchCriteria, SearchMode, SearchResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchState:
    """What search is in flight and what was last shown."""

    mode: SearchMode = SearchMode.TEXT
    criteria: SearchCriteria = field(default_factory=SearchCriteria)
    results: tuple[Business, ...] = ()
    total_count: int = 0
    loading: bool = False
    error: str | None = None
    request_token: int = 0


# -----------------------------------------------------------------------------
# Actions
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class SetMode:
    mode: SearchMode


@dataclass(frozen=True)
class SetCriteria:
    criteria: SearchCriteria


@dataclass(frozen=True)
class SetResults:
    results: tuple[Business, ...]
    total_count: int


@dataclass(frozen=True)
class SetLoading:
    loading: bool


@dataclass(frozen=True)
class SetError:
    error: str | None


@dataclass(frozen=True)
class Reset:
    pass


@dataclass(frozen=True)
class SearchStarted:
    """Issues the next generation token and enters the loading state."""


@dataclass(frozen=True)
class SearchSucceeded:
    token: int
    result: SearchResult


@dataclass(frozen=True)
class SearchFailed:
    token: int
    error: str


SearchAction = (
    SetMode
    | SetCriteria
    | SetResults
    | SetLoading
    | SetError
    | Reset
    | SearchStarted
    | SearchSucceeded
    | SearchFailed
)


def reduce(state: SearchState, action: SearchAction) -> SearchState:
    """Apply an action. Never mutates its input."""
    if isinstance(action, SetMode):
        # Results stay visible until the next search completes
        return replace(state, mode=action.mode)

    if isinstance(action, SetCriteria):
        return replace(state, criteria=action.criteria)

    if isinstance(action, SetResults):
        return replace(
            state,
            results=tuple(action.results),
            total_count=action.total_count,
            loading=False,
            error=None,
        )

    if isinstance(action, SetLoading):
        if action.loading:
            return replace(state, loading=True, error=None)
        return replace(state, loading=False)

    if isinstance(action, SetError):
        return replace(state, error=action.error, loading=False)

    if isinstance(action, Reset):
        # Keep the token counter so responses from before the reset stay stale
        return SearchState(request_token=state.request_token)

    if isinstance(action, SearchStarted):
        return replace(
            state,
            loading=True,
            error=None,
            request_token=state.request_token + 1,
        )

    if isinstance(action, SearchSucceeded):
        if action.token != state.request_token:
            return state
        return replace(
            state,
            results=action.result.results,
            total_count=action.result.total_count,
            loading=False,
            error=None,
        )

    if isinstance(action, SearchFailed):
        if action.token != state.request_token:
            return state
        return replace(
            state,
            results=(),
            total_count=0,
            loading=False,
            error=action.error,
        )

    raise TypeError(f"Unknown search action: {action!r}")


Listener = Callable[[SearchState], None]


class SearchStore:
    """
    The single mutable holder of SearchState.

    All access happens on the event loop thread, so no locking.
    """

    def __init__(self, initial: SearchState | None = None):
        self._state = initial or SearchState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> SearchState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: SearchAction) -> SearchState:
        previous = self._state
        self._state = reduce(previous, action)
        if self._state is not previous:
            for listener in list(self._listeners):
                listener(self._state)
        return self._state

    def set_mode(self, mode: SearchMode) -> None:
        self.dispatch(SetMode(mode))

    def set_criteria(self, criteria: SearchCriteria) -> None:
        self.dispatch(SetCriteria(criteria))

    def set_results(self, results: tuple[Business, ...] | list[Business], total_count: int) -> None:
        self.dispatch(SetResults(tuple(results), total_count))

    def set_loading(self, loading: bool) -> None:
        self.dispatch(SetLoading(loading))

    def set_error(self, error: str | None) -> None:
        self.dispatch(SetError(error))

    def reset(self) -> None:
        self.dispatch(Reset())

    def begin_search(self) -> int:
        """Enter the loading state and return the token for this search."""
        return self.dispatch(SearchStarted()).request_token

    def is_current(self, token: int) -> bool:
        return token == self._state.request_token

    def complete_search(self, token: int, result: SearchResult) -> bool:
        """Apply a search result. Returns False if the token was stale."""
        if not self.is_current(token):
            logger.debug(
                f"Dropping stale search result (token {token}, latest {self._state.request_token})"
            )
            return False
        self.dispatch(SearchSucceeded(token, result))
        return True

    def fail_search(self, token: int, error: str) -> bool:
        """Apply a search failure. Returns False if the token was stale."""
        if not self.is_current(token):
            logger.debug(
                f"Dropping stale search failure (token {token}, latest {self._state.request_token})"
            )
            return False
        self.dispatch(SearchFailed(token, error))
        return True
