"""View adapter interface.

The controller never touches presentation directly; it writes named
surfaces through a ViewAdapter. The Textual UI and the headless logger each
provide one, and tests use a mock.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from canarydash.core.models import Connectivity, Theme
from canarydash.ui.renderer import MatchRow

# Metric surfaces
TOTAL_MATCHES = "total_matches"
TOTAL_CERTS = "total_certs"
ACTIVE_RULES = "active_rules"
UPTIME = "uptime"
CERTS_PER_MIN = "certs_per_min"
MATCHES_PER_MIN = "matches_per_min"
AVG_MATCH_TIME = "avg_match_time"
CPU_USAGE = "cpu_usage"
MEMORY_USAGE = "memory_usage"
WORKERS = "workers"

METRIC_SURFACES = (TOTAL_MATCHES, TOTAL_CERTS, ACTIVE_RULES, UPTIME)
PERFORMANCE_SURFACES = (
    CERTS_PER_MIN, MATCHES_PER_MIN, AVG_MATCH_TIME, CPU_USAGE, MEMORY_USAGE, WORKERS
)


class ViewAdapter(ABC):
    """Writes dashboard surfaces."""

    @abstractmethod
    def set_metric(self, name: str, value: str) -> None:
        """Write one formatted metric or performance figure."""

    @abstractmethod
    def set_rows(self, rows: Sequence[MatchRow]) -> None:
        """Replace the match table body with one row per match."""

    @abstractmethod
    def show_empty_state(self, message: str) -> None:
        """Replace the match table body with a single explanatory row."""

    @abstractmethod
    def set_match_count(self, total: int) -> None:
        """Update both match-count labels."""

    @abstractmethod
    def set_pagination(self, has_previous: bool, has_next: bool) -> None:
        """Enable or disable the page navigation controls."""

    @abstractmethod
    def set_status(self, connectivity: Connectivity) -> None:
        """Update the connectivity badge."""

    @abstractmethod
    def set_clear_visible(self, visible: bool) -> None:
        """Show or hide the clear-matches control."""

    @abstractmethod
    def set_theme(self, theme: Theme, icon: str) -> None:
        """Apply the display theme and the toggle's icon."""


def format_match_count(total: int) -> str:
    return f"{total} matches"
