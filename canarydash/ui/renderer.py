"""
Match row rendering.

Turns Match records into display rows. Row content is plain text; the HTML
helpers escape every interpolated value, and the Textual table renders
cells as rich Text so nothing a server sends is interpreted as markup.
"""

from dataclasses import dataclass
from typing import Iterable, List

from canarydash.core.formatting import (
    DEFAULT_LOOKUP_URL,
    build_lookup_url,
    escape_html,
    flatten_matched_domains,
    format_timestamp,
    priority_badge,
    summarize_domains,
)
from canarydash.core.models import Match

EMPTY_STATE_MESSAGE = "No matches found. Adjust filters or wait for new certificates..."
TABLE_COLUMNS = ("Detected", "Domains", "Rule", "Priority", "Matched", "Lookup")


@dataclass(frozen=True)
class MatchRow:
    """Display values for one match.

    Attributes:
        timestamp: Local detection time
        domains: First DNS names with a "+N more" suffix when truncated
        domains_tooltip: Every DNS name, comma-joined
        rule: Matched rule identifier
        priority: Raw priority string
        badge: Badge style for the priority
        matched_domains: Matched domains flattened to one string
        lookup_url: Certificate-transparency lookup link
    """
    timestamp: str
    domains: str
    domains_tooltip: str
    rule: str
    priority: str
    badge: str
    matched_domains: str
    lookup_url: str


def build_match_row(match: Match, lookup_base_url: str = DEFAULT_LOOKUP_URL) -> MatchRow:
    """
    Build the display row for a match.

    Args:
        match: Match record
        lookup_base_url: Base URL of the lookup service

    Returns:
        MatchRow
    """
    summary, tooltip = summarize_domains(match.dns_names)
    return MatchRow(
        timestamp=format_timestamp(match.detected_at),
        domains=summary,
        domains_tooltip=tooltip,
        rule=match.matched_rule,
        priority=match.priority,
        badge=priority_badge(match.priority),
        matched_domains=flatten_matched_domains(match.matched_domains),
        lookup_url=build_lookup_url(match.tbs_sha256, lookup_base_url),
    )


def build_rows(matches: Iterable[Match], lookup_base_url: str = DEFAULT_LOOKUP_URL) -> List[MatchRow]:
    return [build_match_row(match, lookup_base_url) for match in matches]


def render_row_html(row: MatchRow) -> str:
    """Render one row as an HTML <tr>, escaping every value."""
    return (
        "<tr>"
        f"<td><small>{escape_html(row.timestamp)}</small></td>"
        f"<td><div class=\"text-truncate\" title=\"{escape_html(row.domains_tooltip)}\">"
        f"{escape_html(row.domains)}</div></td>"
        f"<td><span class=\"badge bg-secondary\">{escape_html(row.rule)}</span></td>"
        f"<td><span class=\"badge bg-{escape_html(row.badge)}\">{escape_html(row.priority)}</span></td>"
        f"<td><small><code>{escape_html(row.matched_domains)}</code></small></td>"
        f"<td><a href=\"{escape_html(row.lookup_url)}\" target=\"_blank\" "
        "rel=\"noopener noreferrer\" title=\"View certificate\">lookup</a></td>"
        "</tr>"
    )


def render_empty_state_html(message: str = EMPTY_STATE_MESSAGE) -> str:
    return (
        f"<tr><td colspan=\"{len(TABLE_COLUMNS)}\" class=\"text-center text-muted\">"
        f"{escape_html(message)}</td></tr>"
    )


def render_rows_html(rows: Iterable[MatchRow]) -> str:
    """Render a page of rows, or the empty-state row when there are none."""
    rendered = [render_row_html(row) for row in rows]
    if not rendered:
        return render_empty_state_html()
    return "\n".join(rendered)
