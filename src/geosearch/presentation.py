"""
Text rendering of search results.
"""

from enum import Enum

from .models import Business
from .store import SearchState

NO_RESULTS_TITLE = "No businesses found"
NO_RESULTS_HINT = "Try expanding your search area or removing some filters"
LOADING_TEXT = "Searching..."


class ResultView(str, Enum):
    """Which of the mutually exclusive result panes to show."""

    LOADING = "loading"
    ERROR = "error"
    EMPTY = "empty"
    RESULTS = "results"


def result_view(state: SearchState) -> ResultView:
    if state.loading:
        return ResultView.LOADING
    if state.error is not None:
        return ResultView.ERROR
    if not state.results:
        return ResultView.EMPTY
    return ResultView.RESULTS


def pluralize(count: int, noun: str) -> str:
    """'1 Reward', '2 Rewards'."""
    return f"{count} {noun}{'' if count == 1 else 's'}"


def format_distance(miles: float) -> str:
    return f"{miles:.1f} miles away"


def format_business(business: Business) -> list[str]:
    """Lines describing one business result."""
    lines = [business.name]
    if business.sector:
        lines[0] = f"{business.name} ({business.sector})"
    lines.append(f"  {business.location.formatted_address}")
    if business.distance_from_search is not None:
        lines.append(f"  {format_distance(business.distance_from_search)}")

    badges = []
    if business.active_rewards_count:
        badges.append(pluralize(business.active_rewards_count, "Reward"))
    if business.active_campaigns_count:
        badges.append(pluralize(business.active_campaigns_count, "Campaign"))
    if badges:
        lines.append(f"  {' | '.join(badges)}")
    return lines


def render_results(state: SearchState) -> str:
    """Render the result pane for the current state."""
    view = result_view(state)

    if view == ResultView.LOADING:
        return LOADING_TEXT
    if view == ResultView.ERROR:
        return state.error or ""
    if view == ResultView.EMPTY:
        return f"{NO_RESULTS_TITLE}\n{NO_RESULTS_HINT}"

    lines = [f"{pluralize(state.total_count, 'result')} found"]
    for business in state.results:
        lines.append("")
        lines.extend(format_business(business))
    return "\n".join(lines)
