"""Filter engine: derives the operator's filtered view from the match store."""

from typing import Iterable, Tuple

from canarydash.core.models import DashboardState, Match


def matches_search(match: Match, search_text: str) -> bool:
    """
    Check whether any DNS name contains the search text (case-insensitive).

    An empty search term matches every record, including records that carry
    no DNS names at all.
    """
    term = search_text.lower()
    if not term:
        return True
    return any(term in name.lower() for name in match.dns_names)


def matches_priority(match: Match, priority_filter: str) -> bool:
    """Check the priority predicate; an empty filter accepts everything."""
    return not priority_filter or match.priority == priority_filter


def filter_matches(
    matches: Iterable[Match],
    search_text: str = "",
    priority_filter: str = ""
) -> Tuple[Match, ...]:
    """
    Derive the filtered view.

    The result is always an order-preserving subsequence of ``matches``.

    Args:
        matches: Matches from the store, newest first
        search_text: Free-text DNS name search
        priority_filter: Priority value to keep, or "" for all

    Returns:
        Tuple of matches passing both predicates
    """
    return tuple(
        match for match in matches
        if matches_search(match, search_text) and matches_priority(match, priority_filter)
    )


def apply_filters(state: DashboardState) -> None:
    """Recompute ``filtered_matches`` from state and go back to the first page."""
    state.filtered_matches = filter_matches(
        state.matches,
        state.search_text,
        state.priority_filter
    )
    state.current_page = 0
