"""
Textual UI for canarydash

Terminal dashboard: aggregate counters, performance figures, connectivity
badge, a filterable/paginated match table and a log panel. Presentation
lives here only; all state decisions are made by DashboardController and
reach the widgets through TextualView.
"""

import logging
import webbrowser
from typing import Any, Dict, Optional, Sequence

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import (
    Button,
    DataTable,
    Footer,
    Header,
    Input,
    RichLog,
    Select,
    Static,
)

from canarydash.api.client import DashboardClient
from canarydash.core.models import Connectivity, Priority, Theme
from canarydash.ui import view_adapter as surfaces
from canarydash.ui.event_bus import EventBus
from canarydash.ui.events import FetchCompletedEvent, LogEntryEvent
from canarydash.ui.renderer import TABLE_COLUMNS, MatchRow
from canarydash.ui.theme import ThemeStore, ThemeSwitcher
from canarydash.ui.view_adapter import ViewAdapter, format_match_count
from canarydash.workflow.dashboard import DashboardController

logger = logging.getLogger(__name__)

METRIC_TITLES = {
    surfaces.TOTAL_MATCHES: "Total Matches",
    surfaces.TOTAL_CERTS: "Certificates",
    surfaces.ACTIVE_RULES: "Active Rules",
    surfaces.UPTIME: "Uptime",
    surfaces.CERTS_PER_MIN: "Certs/min",
    surfaces.MATCHES_PER_MIN: "Matches/min",
    surfaces.AVG_MATCH_TIME: "Avg Match Time",
    surfaces.CPU_USAGE: "CPU",
    surfaces.MEMORY_USAGE: "Memory",
    surfaces.WORKERS: "Workers",
}

BADGE_STYLES = {
    'danger': "bold white on red",
    'warning': "bold black on yellow",
    'info': "bold black on cyan",
    'secondary': "white on grey37",
}

TEXTUAL_THEMES = {
    Theme.LIGHT: "textual-light",
    Theme.DARK: "textual-dark",
}

LOG_LEVEL_STYLES = {
    logging.DEBUG: "dim",
    logging.INFO: "white",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "bold red",
}

DEFAULT_TIME_RANGES = [5, 15, 30, 60, 360, 1440]


def time_range_label(minutes: int) -> str:
    if minutes % 1440 == 0:
        days = minutes // 1440
        return f"Last {days} day" + ("s" if days > 1 else "")
    if minutes % 60 == 0:
        hours = minutes // 60
        return f"Last {hours} hour" + ("s" if hours > 1 else "")
    return f"Last {minutes} minutes"


# ============================================================================
# Widgets
# ============================================================================


class MetricCard(Static):
    """Single labelled figure."""

    def __init__(self, name: str, **kwargs):
        super().__init__("-", id=f"metric-{name}", classes="metric-card", **kwargs)
        self.border_title = METRIC_TITLES.get(name, name)


class ConfirmDialog(ModalScreen[bool]):
    """Yes/no modal; dismisses with the answer. Cancel is focused first."""

    BINDINGS = [
        Binding("y", "answer(True)", "Yes", show=False),
        Binding("n,escape", "answer(False)", "No", show=False),
    ]

    def __init__(self, title: str, prompt: str, confirm_label: str = "Yes"):
        super().__init__()
        self.title_text = title
        self.prompt = prompt
        self.confirm_label = confirm_label

    def compose(self) -> ComposeResult:
        with Container(id="confirm-dialog"):
            yield Static(Text(self.title_text, style="bold"), id="confirm-header")
            yield Static(self.prompt, id="confirm-message")
            with Horizontal(id="confirm-buttons"):
                yield Button(self.confirm_label, variant="error", id="yes-btn")
                yield Button("Cancel", variant="primary", id="no-btn")

    def on_mount(self) -> None:
        self.query_one("#no-btn", Button).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.action_answer(event.button.id == "yes-btn")

    def action_answer(self, confirmed: bool) -> None:
        self.dismiss(confirmed)


# ============================================================================
# View adapter
# ============================================================================


class TextualView(ViewAdapter):
    """ViewAdapter writing into a mounted CanaryDashUI."""

    def __init__(self, app: "CanaryDashUI"):
        self.app = app
        self.row_links: Dict[str, str] = {}
        self.row_tooltips: Dict[str, str] = {}

    @property
    def table(self) -> DataTable:
        return self.app.query_one("#matches-table", DataTable)

    def set_metric(self, name: str, value: str) -> None:
        self.app.query_one(f"#metric-{name}", Static).update(Text(value))

    def set_rows(self, rows: Sequence[MatchRow]) -> None:
        table = self.table
        table.clear()
        self.row_links = {}
        self.row_tooltips = {}

        for index, row in enumerate(rows):
            key = str(index)
            table.add_row(
                Text(row.timestamp, style="dim"),
                Text(row.domains),
                Text(row.rule, style=BADGE_STYLES['secondary']),
                Text(row.priority, style=BADGE_STYLES.get(row.badge, BADGE_STYLES['secondary'])),
                Text(row.matched_domains, style="italic"),
                Text("open ↗", style="underline"),
                key=key,
            )
            self.row_links[key] = row.lookup_url
            self.row_tooltips[key] = row.domains_tooltip

    def show_empty_state(self, message: str) -> None:
        table = self.table
        table.clear()
        self.row_links = {}
        self.row_tooltips = {}
        blanks = [""] * (len(TABLE_COLUMNS) - 1)
        table.add_row(Text(message, style="dim italic"), *blanks, key="empty")

    def set_match_count(self, total: int) -> None:
        label = Text(format_match_count(total))
        self.app.query_one("#match-count", Static).update(label)
        self.app.query_one("#match-count-footer", Static).update(label)

    def set_pagination(self, has_previous: bool, has_next: bool) -> None:
        self.app.query_one("#prev-btn", Button).disabled = not has_previous
        self.app.query_one("#next-btn", Button).disabled = not has_next

    def set_status(self, connectivity: Connectivity) -> None:
        badge = self.app.query_one("#status-badge", Static)
        if connectivity is Connectivity.ONLINE:
            badge.update(Text("✓ Online", style="bold white on green"))
        else:
            badge.update(Text("✗ Offline", style="bold white on red"))
        badge.set_class(connectivity is Connectivity.ONLINE, "online")
        badge.set_class(connectivity is Connectivity.OFFLINE, "offline")

    def set_clear_visible(self, visible: bool) -> None:
        self.app.query_one("#clear-btn", Button).display = visible

    def set_theme(self, theme: Theme, icon: str) -> None:
        self.app.theme = TEXTUAL_THEMES[theme]
        self.app.query_one("#theme-btn", Button).label = icon


# ============================================================================
# Application
# ============================================================================


class CanaryDashUI(App):
    """canarydash Textual application.

    Builds the DashboardController on mount, runs the initial load and the
    poll scheduler as workers, and routes operator input to the controller.
    """

    CSS_PATH = "dashboard.tcss"
    TITLE = "canarydash"

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", show=True),
        Binding("r", "refresh", "Refresh", show=True),
        Binding("b", "prev_page", "Prev Page", show=True),
        Binding("n", "next_page", "Next Page", show=True),
        Binding("t", "toggle_theme", "Theme", show=True),
        Binding("slash", "focus_search", "Search", show=False),
    ]

    def __init__(
        self,
        config: dict,
        client: DashboardClient,
        event_bus: EventBus,
        theme_store: Optional[ThemeStore] = None
    ):
        """
        Args:
            config: Configuration dictionary
            client: Backend API client
            event_bus: Event bus carrying log and fetch events
            theme_store: Theme persistence (defaults to config's state file)
        """
        super().__init__()
        self.config = config
        self.client = client
        self.event_bus = event_bus
        self.theme_store = theme_store or ThemeStore(
            config.get('theme', {}).get('state_file') or "~/.config/canarydash/state.json"
        )

        dashboard = config.get('dashboard', {})
        self.time_ranges = list(dashboard.get('time_ranges') or DEFAULT_TIME_RANGES)
        self.default_time_range = dashboard.get('default_time_range', 30)
        if self.default_time_range not in self.time_ranges:
            self.time_ranges = sorted(self.time_ranges + [self.default_time_range])

        self.view: Optional[TextualView] = None
        self.controller: Optional[DashboardController] = None
        self.theme_switcher: Optional[ThemeSwitcher] = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)

        with Horizontal(id="status-row"):
            yield Static(Text("… Connecting"), id="status-badge")
            yield Button("☾", id="theme-btn")

        with Horizontal(id="metrics-row", classes="card-row"):
            for name in surfaces.METRIC_SURFACES:
                yield MetricCard(name)

        with Horizontal(id="performance-row", classes="card-row"):
            for name in surfaces.PERFORMANCE_SURFACES:
                yield MetricCard(name)

        with Horizontal(id="controls-row"):
            yield Input(placeholder="Search domains...", id="search-input")
            yield Select(
                [(p.value.capitalize(), p.value) for p in Priority],
                prompt="All priorities",
                allow_blank=True,
                id="priority-filter",
            )
            yield Select(
                [(time_range_label(m), m) for m in self.time_ranges],
                value=self.default_time_range,
                allow_blank=False,
                id="time-range",
            )
            yield Button("Refresh", id="refresh-btn", variant="primary")
            yield Button("Clear", id="clear-btn", variant="error")
            yield Static(id="match-count")

        yield DataTable(id="matches-table", cursor_type="row", zebra_stripes=True)

        with Horizontal(id="pagination-row"):
            yield Button("◀ Prev", id="prev-btn", disabled=True)
            yield Static(id="match-count-footer")
            yield Button("Next ▶", id="next-btn", disabled=True)

        yield RichLog(id="log-panel", max_lines=500, wrap=True)
        yield Footer()

    def on_mount(self) -> None:
        """Wire the controller to the mounted widgets and start loading."""
        table = self.query_one("#matches-table", DataTable)
        table.add_columns(*TABLE_COLUMNS)
        self.query_one("#clear-btn", Button).display = False
        self.query_one("#log-panel", RichLog).border_title = "Log"

        self.view = TextualView(self)
        self.controller = DashboardController(
            self.config, self.client, self.view, event_bus=self.event_bus
        )
        self.theme_switcher = ThemeSwitcher(self.theme_store, self.view, self.controller.state)
        self.theme_switcher.initialize()

        self.event_bus.subscribe(LogEntryEvent, self.on_log_entry)
        self.event_bus.subscribe(FetchCompletedEvent, self.on_fetch_completed)
        self.run_worker(self.event_bus.process_events(), name="event_processor")

        self.run_worker(self.controller.run(), name="dashboard_startup")
        logger.debug("canarydash UI mounted")

    async def on_unmount(self) -> None:
        if self.controller is not None:
            await self.controller.stop()

    # ========================================================================
    # Event bus handlers
    # ========================================================================

    def on_log_entry(self, event: LogEntryEvent) -> None:
        style = LOG_LEVEL_STYLES.get(event.level, "white")
        line = Text(f"{event.timestamp:%H:%M:%S} ", style="dim")
        if event.source:
            line.append(f"[{event.source.rsplit('.', 1)[-1]}] ", style="dim")
        line.append(event.message, style=style)
        self.query_one("#log-panel", RichLog).write(line)

    def on_fetch_completed(self, event: FetchCompletedEvent) -> None:
        if event.ok:
            self.sub_title = f"{event.endpoint} updated {event.timestamp:%H:%M:%S}"

    # ========================================================================
    # Widget messages
    # ========================================================================

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "search-input" and self.controller is not None:
            self.controller.set_search_text(event.value)

    def on_select_changed(self, event: Select.Changed) -> None:
        if self.controller is None:
            return

        if event.select.id == "priority-filter":
            # The blank sentinel means "no filter"
            value = event.value if isinstance(event.value, str) else ""
            self.controller.set_priority_filter(value)
        elif event.select.id == "time-range":
            if isinstance(event.value, int) and event.value != self.controller.state.time_range_minutes:
                self.run_worker(self.controller.set_time_range(event.value), name="time_range")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        actions = {
            "refresh-btn": self.action_refresh,
            "prev-btn": self.action_prev_page,
            "next-btn": self.action_next_page,
            "theme-btn": self.action_toggle_theme,
            "clear-btn": self.action_clear_matches,
        }
        action = actions.get(event.button.id)
        if action is not None:
            action()

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        if self.view is None or event.row_key is None:
            return
        event.data_table.tooltip = self.view.row_tooltips.get(event.row_key.value)

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        if self.view is None or event.row_key is None:
            return
        url = self.view.row_links.get(event.row_key.value)
        if url:
            logger.info(f"Opening certificate lookup: {url}")
            webbrowser.open_new_tab(url)

    # ========================================================================
    # Actions
    # ========================================================================

    def action_refresh(self) -> None:
        if self.controller is not None:
            self.run_worker(self.controller.refresh(), name="refresh")

    def action_prev_page(self) -> None:
        if self.controller is not None:
            self.controller.previous_page()

    def action_next_page(self) -> None:
        if self.controller is not None:
            self.controller.next_page()

    def action_toggle_theme(self) -> None:
        if self.theme_switcher is not None:
            self.theme_switcher.toggle()

    def action_focus_search(self) -> None:
        self.query_one("#search-input", Input).focus()

    def action_clear_matches(self) -> None:
        """Clear the backend's match cache after confirmation."""
        self.run_worker(self._handle_clear_dialog(), exclusive=True, group="clear")

    async def _handle_clear_dialog(self) -> None:
        confirmed = await self.push_screen_wait(
            ConfirmDialog(
                "Clear Matches",
                "Are you sure you want to clear all matches from memory?",
                confirm_label="Clear",
            )
        )
        if not confirmed:
            logger.info("Clear matches cancelled")
            return

        if await self.client.clear_matches():
            self.notify("Matches cleared", timeout=2)
            if self.controller is not None:
                await self.controller.refresh()
        else:
            self.notify("Could not clear matches", severity="error", timeout=3)
