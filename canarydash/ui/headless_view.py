"""
Headless view for CI/automation environments.

Implements the ViewAdapter interface without a terminal UI: surfaces are
kept in memory and only meaningful changes are logged.
"""

import logging
from typing import Dict, List, Optional, Sequence

from canarydash.core.models import Connectivity, Theme
from canarydash.ui.renderer import MatchRow, render_rows_html
from canarydash.ui.view_adapter import ViewAdapter, format_match_count

logger = logging.getLogger(__name__)


class HeadlessView(ViewAdapter):
    """
    Minimal view for headless/non-TTY runs.

    Output includes:
    - Connectivity transitions
    - Match count changes
    - Metric changes at DEBUG

    Does NOT output:
    - Individual rows
    - Pagination state
    - Theme changes
    """

    def __init__(self):
        self.metrics: Dict[str, str] = {}
        self.rows: List[MatchRow] = []
        self.empty_message: Optional[str] = None
        self.match_count_labels = ("", "")
        self.has_previous = False
        self.has_next = False
        self.status: Optional[Connectivity] = None
        self.clear_visible = False
        self.theme: Optional[Theme] = None
        self.theme_icon = ""

    def start(self) -> None:
        logger.info("Running in headless mode (minimal output)")

    def set_metric(self, name: str, value: str) -> None:
        if self.metrics.get(name) != value:
            logger.debug(f"  {name}: {value}")
        self.metrics[name] = value

    def set_rows(self, rows: Sequence[MatchRow]) -> None:
        self.rows = list(rows)
        self.empty_message = None

    def show_empty_state(self, message: str) -> None:
        self.rows = []
        self.empty_message = message

    def set_match_count(self, total: int) -> None:
        label = format_match_count(total)
        if self.match_count_labels[0] != label:
            logger.info(f"Showing {label}")
        self.match_count_labels = (label, label)

    def set_pagination(self, has_previous: bool, has_next: bool) -> None:
        self.has_previous = has_previous
        self.has_next = has_next

    def set_status(self, connectivity: Connectivity) -> None:
        if connectivity is not self.status:
            logger.info(f"Status: {connectivity.value.capitalize()}")
        self.status = connectivity

    def set_clear_visible(self, visible: bool) -> None:
        self.clear_visible = visible

    def set_theme(self, theme: Theme, icon: str) -> None:
        self.theme = theme
        self.theme_icon = icon

    def export_html(self) -> str:
        """Current table body as an escaped HTML fragment."""
        return render_rows_html(self.rows)

    def log_summary(self) -> None:
        """Log the current counters in one line."""
        if not self.metrics:
            logger.info("No metrics loaded")
            return
        summary = ", ".join(f"{name}={value}" for name, value in self.metrics.items())
        logger.info(f"Dashboard: {summary}")
