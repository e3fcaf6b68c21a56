"""Tests for the search state store."""

import pytest

from geosearch.models import SearchCriteria, SearchMode
from geosearch.presentation import ResultView, result_view
from geosearch.store import (
    SearchState,
    SearchStore,
    SetError,
    SetLoading,
    SetResults,
    reduce,
)


class TestReduce:
    """Test the pure reducer."""

    def test_does_not_mutate(self):
        state = SearchState()
        new_state = reduce(state, SetLoading(True))
        assert state.loading is False
        assert new_state.loading is True

    def test_loading_clears_error(self):
        """Should never be loading and in error at once."""
        state = reduce(SearchState(), SetError("Search failed. Please try again."))
        state = reduce(state, SetLoading(True))
        assert state.loading is True
        assert state.error is None

    def test_error_clears_loading(self):
        state = reduce(SearchState(), SetLoading(True))
        state = reduce(state, SetError("boom"))
        assert state.loading is False
        assert state.error == "boom"

    def test_unknown_action(self):
        with pytest.raises(TypeError):
            reduce(SearchState(), object())

    def test_results_clear_error(self, make_result):
        """Should leave the error view once results are set."""
        state = reduce(SearchState(), SetError("boom"))
        state = reduce(state, SetResults(make_result(2).results, 2))
        assert state.error is None
        assert state.loading is False
        assert result_view(state) == ResultView.RESULTS


class TestLoadingErrorExclusive:
    """Loading and error are never set together."""

    def test_mixed_sequence(self, make_result):
        store = SearchStore()
        result = make_result(3)
        steps = [
            lambda: store.set_loading(True),
            lambda: store.set_error("Search failed"),
            lambda: store.set_loading(True),
            store.begin_search,
            lambda: store.fail_search(store.state.request_token, "Search failed"),
            lambda: store.set_results(result.results, 3),
            lambda: store.set_error("boom"),
            lambda: store.set_loading(False),
            store.reset,
            lambda: store.set_error("boom"),
            store.begin_search,
            lambda: store.complete_search(store.state.request_token, result),
        ]

        for step in steps:
            step()
            assert not (store.state.loading and store.state.error)

        assert store.state.total_count == 3


class TestSearchStore:
    """Test SearchStore operations."""

    def test_set_mode_keeps_results(self, make_result):
        """Should leave stale results visible when switching panel."""
        store = SearchStore()
        store.set_results(make_result(2).results, 2)
        store.set_mode(SearchMode.MAP)

        assert store.state.mode == SearchMode.MAP
        assert len(store.state.results) == 2

    def test_set_criteria_replaces(self):
        """Should replace criteria wholesale, never merge."""
        store = SearchStore()
        store.set_criteria(SearchCriteria(business_name="Carrot", sector="Bakery"))
        store.set_criteria(SearchCriteria(sector="Cafe"))

        assert store.state.criteria.business_name is None
        assert store.state.criteria.sector == "Cafe"

    def test_set_results_clears_loading(self, make_result):
        store = SearchStore()
        store.set_loading(True)
        store.set_results(make_result(3).results, 7)

        assert store.state.loading is False
        assert store.state.total_count == 7

    def test_reset(self, make_result):
        store = SearchStore()
        store.set_mode(SearchMode.MAP)
        store.set_results(make_result(1).results, 1)
        store.reset()

        assert store.state.mode == SearchMode.TEXT
        assert store.state.results == ()

    def test_subscribe(self):
        """Should notify subscribers on each change until unsubscribed."""
        store = SearchStore()
        seen = []
        unsubscribe = store.subscribe(seen.append)

        store.set_loading(True)
        unsubscribe()
        store.set_loading(False)

        assert len(seen) == 1
        assert seen[0].loading is True


class TestSearchTokens:
    """Test generation tokens for search completions."""

    def test_begin_search(self):
        """Should enter loading, clear error and issue increasing tokens."""
        store = SearchStore()
        store.set_error("old")

        first = store.begin_search()
        second = store.begin_search()

        assert second > first
        assert store.state.loading is True
        assert store.state.error is None

    def test_complete_current(self, make_result):
        store = SearchStore()
        token = store.begin_search()

        assert store.complete_search(token, make_result(2)) is True
        assert store.state.loading is False
        assert store.state.total_count == 2

    def test_stale_completion_dropped(self, make_result):
        """Should ignore a slow response to an older search."""
        store = SearchStore()
        old = store.begin_search()
        new = store.begin_search()

        assert store.complete_search(new, make_result(1)) is True
        assert store.complete_search(old, make_result(5)) is False
        assert store.state.total_count == 1

    def test_stale_failure_dropped(self, make_result):
        store = SearchStore()
        old = store.begin_search()
        new = store.begin_search()
        store.complete_search(new, make_result(1))

        assert store.fail_search(old, "Search failed. Please try again.") is False
        assert store.state.error is None
        assert len(store.state.results) == 1

    def test_failure_resets_results(self, make_result):
        """Should clear results and total when a search fails."""
        store = SearchStore()
        store.complete_search(store.begin_search(), make_result(3))

        token = store.begin_search()
        assert store.fail_search(token, "Search failed. Please try again.") is True

        assert store.state.results == ()
        assert store.state.total_count == 0
        assert store.state.loading is False
        assert store.state.error == "Search failed. Please try again."

    def test_reset_keeps_tokens_stale(self, make_result):
        """Should not apply a response issued before a reset."""
        store = SearchStore()
        token = store.begin_search()
        store.reset()
        store.begin_search()

        assert store.complete_search(token, make_result(1)) is False
