"""Paginator: fixed-size pages over the filtered view."""

from dataclasses import dataclass
from typing import Sequence, Tuple

from canarydash.core.models import DashboardState, Match


@dataclass(frozen=True)
class Page:
    """One page of the filtered view.

    Attributes:
        rows: Matches on this page
        number: Zero-based page index
        total: Length of the whole filtered view
        has_previous: Whether the previous-page control is enabled
        has_next: Whether the next-page control is enabled
    """
    rows: Tuple[Match, ...]
    number: int
    total: int
    has_previous: bool
    has_next: bool

    @property
    def is_empty(self) -> bool:
        return not self.rows


def paginate(filtered: Sequence[Match], current_page: int, page_size: int) -> Page:
    """
    Slice the filtered view into the requested page.

    Args:
        filtered: Filtered matches
        current_page: Zero-based page index
        page_size: Rows per page

    Returns:
        Page with its rows and navigation enablement
    """
    start = current_page * page_size
    end = start + page_size
    return Page(
        rows=tuple(filtered[start:end]),
        number=current_page,
        total=len(filtered),
        has_previous=current_page > 0,
        has_next=end < len(filtered),
    )


def current_page(state: DashboardState) -> Page:
    """Page for the state's current position."""
    return paginate(state.filtered_matches, state.current_page, state.page_size)


def previous_page(state: DashboardState) -> bool:
    """Move back one page if possible. Returns True if the page changed."""
    if state.current_page > 0:
        state.current_page -= 1
        return True
    return False


def next_page(state: DashboardState) -> bool:
    """Move forward one page if possible. Returns True if the page changed."""
    if (state.current_page + 1) * state.page_size < len(state.filtered_matches):
        state.current_page += 1
        return True
    return False
