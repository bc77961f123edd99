"""Match store: the cached match list for the active time window."""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional, Tuple

from canarydash.core.models import DashboardState, Match

logger = logging.getLogger(__name__)

# Unparseable timestamps sort after every real one
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def parse_detected_at(value: str) -> Optional[datetime]:
    """
    Parse an ISO-8601 detection timestamp.

    Accepts a trailing ``Z`` and fractional seconds of any precision
    (Go emits nanoseconds). Naive values are taken as UTC.

    Args:
        value: Timestamp string from the server

    Returns:
        Timezone-aware datetime, or None if the value cannot be parsed
    """
    if not value or not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith(('Z', 'z')):
        text = text[:-1] + '+00:00'

    # Trim fractional seconds to microseconds
    if '.' in text:
        head, _, rest = text.partition('.')
        digits = ''
        while rest and rest[0].isdigit():
            digits += rest[0]
            rest = rest[1:]
        text = f"{head}.{digits[:6].ljust(6, '0')}{rest}" if digits else head + rest

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _sort_key(match: Match) -> datetime:
    return parse_detected_at(match.detected_at) or _OLDEST


def sort_newest_first(matches: Iterable[Match]) -> Tuple[Match, ...]:
    """
    Sort matches by detection time, newest first.

    The sort is stable, so matches with equal timestamps keep their
    arrival order.

    Args:
        matches: Matches in server order

    Returns:
        New tuple sorted by ``detected_at`` descending
    """
    return tuple(sorted(matches, key=_sort_key, reverse=True))


def replace_matches(state: DashboardState, matches: Iterable[Match]) -> None:
    """Replace the cached matches with a freshly fetched list."""
    state.matches = sort_newest_first(matches)
    logger.debug(f"Match store holds {len(state.matches)} matches")


def clear_matches(state: DashboardState) -> None:
    """
    Drop every cached match after a failed fetch.

    The filtered view is forced empty directly instead of being re-derived,
    and the page index goes back to the first page.
    """
    state.matches = ()
    state.filtered_matches = ()
    state.current_page = 0
