"""Backend JSON response parsing and validation."""

import json
from typing import Any, Dict, List, Optional

from canarydash.core.models import Match, MetricsSnapshot, PerformanceSnapshot


class ResponseError(Exception):
    """Response parsing errors (malformed or unexpected JSON shape)."""
    pass


def validate_response(response_content: bytes) -> Dict[str, Any]:
    """
    Validate and decode an API response body.

    Args:
        response_content: Raw response bytes

    Returns:
        Decoded JSON object

    Raises:
        ResponseError: If the body is empty, not JSON, or not an object
    """
    if not response_content:
        raise ResponseError("Empty response body received")

    try:
        data = json.loads(response_content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ResponseError(f"Malformed JSON: {e}")

    if not isinstance(data, dict):
        raise ResponseError(f"Invalid response: expected a JSON object, got {type(data).__name__}")

    return data


def _require_int(data: Dict[str, Any], key: str) -> int:
    value = data.get(key)
    # bool is an int subclass but never a valid counter
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ResponseError(f"Field '{key}' missing or not a number: {value!r}")
    if value < 0:
        raise ResponseError(f"Field '{key}' must be non-negative: {value!r}")
    return int(value)


def _require_number(data: Dict[str, Any], key: str) -> float:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ResponseError(f"Field '{key}' missing or not a number: {value!r}")
    return float(value)


def parse_metrics(data: Dict[str, Any]) -> MetricsSnapshot:
    """
    Parse the /api/metrics payload.

    Raises:
        ResponseError: If a counter is missing or invalid
    """
    return MetricsSnapshot(
        total_matches=_require_int(data, 'total_matches'),
        total_certs=_require_int(data, 'total_certs'),
        rules_count=_require_int(data, 'rules_count'),
        uptime_seconds=_require_int(data, 'uptime_seconds'),
        recent_matches=_require_int(data, 'recent_matches'),
    )


def parse_performance(data: Dict[str, Any]) -> Optional[PerformanceSnapshot]:
    """
    Parse the /api/metrics/performance payload.

    Only the ``current`` window is read.

    Returns:
        PerformanceSnapshot, or None when ``current`` is null or absent

    Raises:
        ResponseError: If ``current`` is present but malformed
    """
    current = data.get('current')
    if current is None:
        return None
    if not isinstance(current, dict):
        raise ResponseError(f"Field 'current' must be an object, got {type(current).__name__}")

    return PerformanceSnapshot(
        certs_per_minute=_require_number(current, 'certs_per_minute'),
        matches_per_minute=_require_number(current, 'matches_per_minute'),
        avg_match_time_us=int(_require_number(current, 'avg_match_time_us')),
        cpu_percent=_require_number(current, 'cpu_percent'),
        memory_used_mb=_require_number(current, 'memory_used_mb'),
        goroutine_count=int(_require_number(current, 'goroutine_count')),
    )


def _string_list(value: Any, field: str) -> tuple:
    if value is None:
        return ()
    if not isinstance(value, list) or any(not isinstance(v, str) for v in value):
        raise ResponseError(f"Field '{field}' must be a list of strings")
    return tuple(value)


def parse_match(item: Any) -> Match:
    """
    Parse one match record.

    ``matched_domains`` may be a single string or a list of strings; the
    server is not consistent about which.

    Raises:
        ResponseError: If the record is not an object or has bad field types
    """
    if not isinstance(item, dict):
        raise ResponseError(f"Match record must be an object, got {type(item).__name__}")

    matched_domains = item.get('matched_domains')
    if isinstance(matched_domains, list):
        matched_domains = _string_list(matched_domains, 'matched_domains')
    elif matched_domains is None:
        matched_domains = ''
    elif not isinstance(matched_domains, str):
        raise ResponseError("Field 'matched_domains' must be a string or list of strings")

    return Match(
        detected_at=str(item.get('detected_at') or ''),
        dns_names=_string_list(item.get('dns_names'), 'dns_names'),
        matched_rule=str(item.get('matched_rule') or ''),
        priority=str(item.get('priority') or ''),
        matched_domains=matched_domains,
        tbs_sha256=str(item.get('tbs_sha256') or ''),
    )


def parse_matches(data: Dict[str, Any]) -> List[Match]:
    """
    Parse the /api/matches/recent payload.

    A missing or null ``matches`` key is an empty list.

    Raises:
        ResponseError: If ``matches`` is not a list or a record is malformed
    """
    items = data.get('matches')
    if items is None:
        return []
    if not isinstance(items, list):
        raise ResponseError(f"Field 'matches' must be a list, got {type(items).__name__}")
    return [parse_match(item) for item in items]
