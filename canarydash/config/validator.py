"""Configuration validation."""

import logging
from typing import Dict, Any, List
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR')


class ValidationError(Exception):
    """Configuration validation errors."""
    pass


def validate_config(config: Dict[str, Any]) -> None:
    """
    Check every section and report all problems at once.

    Raises:
        ValidationError: listing each offending ``section.key``
    """
    checks = (
        ('api', _validate_api),
        ('polling', _validate_polling),
        ('dashboard', _validate_dashboard),
        ('lookup', _validate_lookup),
        ('theme', _validate_theme),
        ('logging', _validate_logging),
    )
    errors = [e for name, check in checks for e in check(config.get(name) or {})]

    if errors:
        raise ValidationError(
            f"{len(errors)} configuration problem(s):\n" + "\n".join(f"  - {e}" for e in errors)
        )


def _is_http_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _validate_api(section: Dict[str, Any]) -> List[str]:
    """Validate api section."""
    errors = []

    if not _is_http_url(section.get('base_url')):
        errors.append("api.base_url must be an http(s) URL")

    timeout = section.get('request_timeout')
    if timeout is not None:
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            errors.append("api.request_timeout must be a positive number or null")

    clear_path = section.get('clear_path', '/api/matches/clear')
    if not isinstance(clear_path, str) or not clear_path.startswith('/'):
        errors.append("api.clear_path must be an absolute path starting with '/'")

    return errors


def _validate_polling(section: Dict[str, Any]) -> List[str]:
    """Validate polling section."""
    errors = []

    interval = section.get('interval_seconds', 5)
    if isinstance(interval, bool) or not isinstance(interval, (int, float)) or interval <= 0:
        errors.append("polling.interval_seconds must be a positive number")
    elif interval < 1:
        logger.warning(f"polling.interval_seconds={interval} polls the backend more than once per second")

    overlap = section.get('overlap', 'allow')
    if overlap not in ('skip', 'allow'):
        errors.append("polling.overlap must be 'skip' or 'allow'")

    if not _is_positive_int(section.get('stale_after_cycles', 3)):
        errors.append("polling.stale_after_cycles must be a positive integer")

    window = section.get('performance_window_minutes', 60)
    if not _is_positive_int(window):
        errors.append("polling.performance_window_minutes must be a positive integer")

    return errors


def _validate_dashboard(section: Dict[str, Any]) -> List[str]:
    """Validate dashboard section."""
    errors = []

    if not _is_positive_int(section.get('page_size', 20)):
        errors.append("dashboard.page_size must be a positive integer")

    if not _is_positive_int(section.get('default_time_range', 30)):
        errors.append("dashboard.default_time_range must be a positive integer (minutes)")

    time_ranges = section.get('time_ranges', [])
    if not isinstance(time_ranges, list):
        errors.append("dashboard.time_ranges must be a list")
    elif any(not _is_positive_int(m) for m in time_ranges):
        errors.append("dashboard.time_ranges entries must be positive integers (minutes)")

    return errors


def _validate_lookup(section: Dict[str, Any]) -> List[str]:
    """Validate lookup section."""
    errors = []

    if not _is_http_url(section.get('base_url')):
        errors.append("lookup.base_url must be an http(s) URL")

    return errors


def _validate_theme(section: Dict[str, Any]) -> List[str]:
    """Validate theme section."""
    errors = []

    state_file = section.get('state_file')
    if not isinstance(state_file, str) or not state_file:
        errors.append("theme.state_file must be a file path")

    return errors


def _validate_logging(section: Dict[str, Any]) -> List[str]:
    errors = []

    if str(section.get('level', 'INFO')).upper() not in LOG_LEVELS:
        errors.append(f"logging.level must be one of {', '.join(LOG_LEVELS)} (got {section.get('level')!r})")

    if not isinstance(section.get('console', True), bool):
        errors.append("logging.console must be true or false")

    log_file = section.get('file')
    if log_file is not None and not isinstance(log_file, str):
        errors.append("logging.file must be a path string or null")

    return errors
