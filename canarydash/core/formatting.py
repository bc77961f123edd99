"""Display formatting for dashboard surfaces."""

import html
from typing import Optional, Sequence, Tuple, Union
from urllib.parse import quote

from canarydash.core.store import parse_detected_at

DEFAULT_LOOKUP_URL = "https://crt.sh/"
DOMAIN_SUMMARY_LIMIT = 3

# Priority -> badge style; anything unrecognized falls back to secondary
PRIORITY_BADGES = {
    'critical': 'danger',
    'high': 'warning',
    'medium': 'info',
    'low': 'secondary',
}
DEFAULT_BADGE = 'secondary'


def format_grouped(value: Union[int, float]) -> str:
    """
    Format a number with thousands grouping.

    Integral values print without decimals; other floats keep up to three
    fraction digits with trailing zeros dropped.

    Examples:
        >>> format_grouped(1234567)
        '1,234,567'
        >>> format_grouped(1234.5)
        '1,234.5'
    """
    if isinstance(value, float) and not value.is_integer():
        text = f"{value:,.3f}".rstrip('0').rstrip('.')
        return text
    return f"{int(value):,}"


def format_uptime(seconds: int) -> str:
    """
    Convert uptime into a single largest-unit label.

    Examples:
        >>> format_uptime(59)
        '59s'
        >>> format_uptime(90000)
        '1d'
    """
    seconds = int(seconds)
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m"
    if seconds < 86400:
        return f"{seconds // 3600}h"
    return f"{seconds // 86400}d"


def format_micros(value: int) -> str:
    return f"{value} μs"


def format_percent(value: float) -> str:
    return f"{value:.1f}%"


def format_megabytes(value: float) -> str:
    return f"{value:.1f} MB"


def format_timestamp(detected_at: str) -> str:
    """
    Format a detection timestamp in local time.

    Unparseable values are returned unchanged so the row still renders.
    """
    parsed = parse_detected_at(detected_at)
    if parsed is None:
        return detected_at or ''
    return parsed.astimezone().strftime('%Y-%m-%d %H:%M:%S')


def summarize_domains(
    dns_names: Sequence[str],
    limit: int = DOMAIN_SUMMARY_LIMIT
) -> Tuple[str, str]:
    """
    Build the domain summary and its tooltip.

    Args:
        dns_names: DNS names on the certificate
        limit: Number of names shown before truncating

    Returns:
        Tuple of (summary, full comma-joined list)
    """
    summary = ', '.join(dns_names[:limit])
    if len(dns_names) > limit:
        summary += f" (+{len(dns_names) - limit} more)"
    return summary, ', '.join(dns_names)


def flatten_matched_domains(matched_domains: Union[str, Sequence[str], None]) -> str:
    """Join a sequence of matched domains; a scalar passes through."""
    if matched_domains is None:
        return ''
    if isinstance(matched_domains, str):
        return matched_domains
    return ', '.join(matched_domains)


def priority_badge(priority: Optional[str]) -> str:
    return PRIORITY_BADGES.get(priority, DEFAULT_BADGE)


def build_lookup_url(tbs_sha256: str, base_url: str = DEFAULT_LOOKUP_URL) -> str:
    """Deep link to the certificate-transparency lookup service."""
    return f"{base_url}?q={quote(tbs_sha256 or '', safe='')}"


def escape_html(text: Optional[str]) -> str:
    """Escape markup-significant characters; None and "" become ""."""
    if not text:
        return ''
    return html.escape(str(text), quote=True)
