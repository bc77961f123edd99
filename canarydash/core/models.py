"""Data model for the dashboard.

Match records, metric snapshots and the single mutable DashboardState that
the controller reconciles against every fetch outcome.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union


class Priority(Enum):
    """Severity classification of a match."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Connectivity(Enum):
    """Binary backend connectivity state."""
    ONLINE = "online"
    OFFLINE = "offline"


class Theme(Enum):
    """Persisted display preference."""
    LIGHT = "light"
    DARK = "dark"


@dataclass(frozen=True)
class Match:
    """A single rule firing against an observed certificate.

    Attributes:
        detected_at: ISO-8601 detection instant as sent by the server
        dns_names: Subject/SAN hostnames on the certificate (may be empty)
        matched_rule: Identifier of the rule that fired
        priority: Raw priority string; usually one of Priority's values
        matched_domains: Either a single string or a tuple of strings
        tbs_sha256: Hex fingerprint of the to-be-signed certificate body
    """
    detected_at: str
    dns_names: Tuple[str, ...]
    matched_rule: str
    priority: str
    matched_domains: Union[str, Tuple[str, ...]]
    tbs_sha256: str


@dataclass(frozen=True)
class MetricsSnapshot:
    """Aggregate counters from /api/metrics."""
    total_matches: int
    total_certs: int
    rules_count: int
    uptime_seconds: int
    recent_matches: int


@dataclass(frozen=True)
class PerformanceSnapshot:
    """The `current` window from /api/metrics/performance."""
    certs_per_minute: float
    matches_per_minute: float
    avg_match_time_us: int
    cpu_percent: float
    memory_used_mb: float
    goroutine_count: int


DEFAULT_PAGE_SIZE = 20
DEFAULT_TIME_RANGE_MINUTES = 30


@dataclass
class DashboardState:
    """Process-wide dashboard state.

    Each field has a single owner: the match store owns ``matches``, the
    filter engine owns ``filtered_matches`` and the paginator owns
    ``current_page``. Everything else is operator input.
    """
    matches: Tuple[Match, ...] = ()
    filtered_matches: Tuple[Match, ...] = ()
    current_page: int = 0
    page_size: int = DEFAULT_PAGE_SIZE
    connectivity: Connectivity = Connectivity.OFFLINE
    time_range_minutes: int = DEFAULT_TIME_RANGE_MINUTES
    theme: Theme = Theme.LIGHT
    search_text: str = ""
    priority_filter: str = ""


class Endpoint(Enum):
    """The three independently polled backend resources."""
    METRICS = "metrics"
    MATCHES = "matches"
    PERFORMANCE = "performance"
