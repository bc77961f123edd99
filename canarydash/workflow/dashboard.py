"""
Dashboard controller

Owns the DashboardState and reconciles it against fetch outcomes:
fetch -> policy table -> match store / metric surfaces -> filter engine
-> paginator -> view adapter. All mutation happens here, on the event loop,
between awaits.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from canarydash.api.client import DashboardClient
from canarydash.api.error_handler import FetchResult
from canarydash.core import filter_engine, paginator, store
from canarydash.core.formatting import (
    DEFAULT_LOOKUP_URL,
    format_grouped,
    format_megabytes,
    format_micros,
    format_percent,
    format_uptime,
)
from canarydash.core.models import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_TIME_RANGE_MINUTES,
    DashboardState,
    Endpoint,
    MetricsSnapshot,
    PerformanceSnapshot,
)
from canarydash.core.policy import Action, actions_for
from canarydash.core.status import StatusMonitor
from canarydash.ui import view_adapter as surfaces
from canarydash.ui.event_bus import EventBus
from canarydash.ui.events import FetchCompletedEvent
from canarydash.ui.renderer import EMPTY_STATE_MESSAGE, build_rows
from canarydash.ui.view_adapter import ViewAdapter
from canarydash.workflow.scheduler import (
    DEFAULT_INTERVAL_SECONDS,
    DEFAULT_STALE_AFTER_CYCLES,
    OverlapPolicy,
    PollScheduler,
)

logger = logging.getLogger(__name__)


class DashboardController:
    """
    Drives polling, state reconciliation and rendering.

    Startup loads metrics, then matches, then performance, strictly in that
    order; only then does the repeating scheduler start. After that the three
    fetches race freely every cycle, and a late response from an older cycle
    may overwrite a newer one.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        client: DashboardClient,
        view: ViewAdapter,
        state: Optional[DashboardState] = None,
        event_bus: Optional[EventBus] = None
    ):
        """
        Args:
            config: Configuration dictionary
            client: Backend API client
            view: View adapter receiving every surface write
            state: Optional pre-built state (a fresh one is created otherwise)
            event_bus: Optional bus receiving a FetchCompletedEvent per fetch
        """
        self.config = config
        self.client = client
        self.view = view
        self.event_bus = event_bus

        dashboard = config.get('dashboard', {})
        self.state = state or DashboardState(
            page_size=dashboard.get('page_size', DEFAULT_PAGE_SIZE),
            time_range_minutes=dashboard.get('default_time_range', DEFAULT_TIME_RANGE_MINUTES),
        )
        self.status = StatusMonitor(self.state, view)
        self.lookup_base_url = config.get('lookup', {}).get('base_url') or DEFAULT_LOOKUP_URL

        polling = config.get('polling', {})
        self.interval = polling.get('interval_seconds', DEFAULT_INTERVAL_SECONDS)
        self.overlap = OverlapPolicy(polling.get('overlap', OverlapPolicy.ALLOW.value))
        self.stale_after = polling.get('stale_after_cycles', DEFAULT_STALE_AFTER_CYCLES)
        self.scheduler: Optional[PollScheduler] = None

        self._handlers = {
            Action.SET_ONLINE: lambda result: self.status.mark(True),
            Action.SET_OFFLINE: lambda result: self.status.mark(False),
            Action.APPLY_METRICS: lambda result: self._apply_metrics(result.payload),
            Action.APPLY_PERFORMANCE: lambda result: self._apply_performance(result.payload),
            Action.REPLACE_MATCHES: lambda result: self._replace_matches(result.payload),
            Action.CLEAR_MATCHES: lambda result: self._clear_matches(),
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Initial synchronous load: metrics, then matches, then performance."""
        logger.info(f"Loading dashboard data from {getattr(self.client.client, 'base_url', 'backend')}")
        await self.load_metrics()
        await self.load_matches()
        await self.load_performance()

    def start_polling(self) -> PollScheduler:
        """Start the repeating cycle. Only the first call has any effect."""
        if self.scheduler is None:
            self.scheduler = PollScheduler(
                {
                    Endpoint.METRICS.value: self.load_metrics,
                    Endpoint.MATCHES.value: self.load_matches,
                    Endpoint.PERFORMANCE.value: self.load_performance,
                },
                interval=self.interval,
                overlap=self.overlap,
                stale_after=self.stale_after,
            )
        self.scheduler.start()
        return self.scheduler

    async def run(self) -> None:
        """Initialize, then start polling."""
        await self.initialize()
        self.start_polling()

    async def stop(self) -> None:
        if self.scheduler is not None:
            await self.scheduler.stop()

    # ------------------------------------------------------------------
    # Fetch adapters
    # ------------------------------------------------------------------

    async def load_metrics(self) -> FetchResult:
        result = await self.client.fetch_metrics()
        await self._apply_and_publish(result)
        return result

    async def load_matches(self) -> FetchResult:
        result = await self.client.fetch_recent_matches(self.state.time_range_minutes)
        await self._apply_and_publish(result)
        return result

    async def load_performance(self) -> FetchResult:
        result = await self.client.fetch_performance()
        await self._apply_and_publish(result)
        return result

    async def _apply_and_publish(self, result: FetchResult) -> None:
        self.apply_result(result)
        if self.event_bus is not None:
            await self.event_bus.publish(FetchCompletedEvent(
                endpoint=result.endpoint.value,
                ok=result.ok,
                error_kind=result.error_kind.value if result.error_kind else None,
                elapsed=result.elapsed,
                timestamp=datetime.now(),
            ))

    def apply_result(self, result: FetchResult) -> None:
        """Perform the policy table's actions for a fetch outcome, in order."""
        for action in actions_for(result.endpoint, result.ok):
            self._handlers[action](result)

    def _apply_metrics(self, metrics: MetricsSnapshot) -> None:
        self.view.set_metric(surfaces.TOTAL_MATCHES, format_grouped(metrics.total_matches))
        self.view.set_metric(surfaces.TOTAL_CERTS, format_grouped(metrics.total_certs))
        self.view.set_metric(surfaces.ACTIVE_RULES, format_grouped(metrics.rules_count))
        self.view.set_metric(surfaces.UPTIME, format_uptime(metrics.uptime_seconds))

        # Shown once there is something to clear; this path never hides it
        if metrics.recent_matches > 0:
            self.view.set_clear_visible(True)

    def _apply_performance(self, current: Optional[PerformanceSnapshot]) -> None:
        if current is None:
            return
        self.view.set_metric(surfaces.CERTS_PER_MIN, format_grouped(current.certs_per_minute))
        self.view.set_metric(surfaces.MATCHES_PER_MIN, format_grouped(current.matches_per_minute))
        self.view.set_metric(surfaces.AVG_MATCH_TIME, format_micros(current.avg_match_time_us))
        self.view.set_metric(surfaces.CPU_USAGE, format_percent(current.cpu_percent))
        self.view.set_metric(surfaces.MEMORY_USAGE, format_megabytes(current.memory_used_mb))
        self.view.set_metric(surfaces.WORKERS, format_grouped(current.goroutine_count))

    def _replace_matches(self, matches) -> None:
        store.replace_matches(self.state, matches)
        self.apply_filters()

    def _clear_matches(self) -> None:
        # Skips the filter engine: the view is forced empty, not re-derived
        store.clear_matches(self.state)
        self.render()

    # ------------------------------------------------------------------
    # Operator inputs
    # ------------------------------------------------------------------

    def apply_filters(self) -> None:
        """Re-derive the filtered view, reset to the first page and render."""
        filter_engine.apply_filters(self.state)
        self.render()

    def set_search_text(self, text: str) -> None:
        self.state.search_text = text or ""
        self.apply_filters()

    def set_priority_filter(self, priority: Optional[str]) -> None:
        self.state.priority_filter = priority or ""
        self.apply_filters()

    async def set_time_range(self, minutes: Optional[int]) -> FetchResult:
        """Change the time window and refetch matches immediately."""
        self.state.time_range_minutes = int(minutes) if minutes else DEFAULT_TIME_RANGE_MINUTES
        logger.info(f"Time range set to {self.state.time_range_minutes} minutes")
        return await self.load_matches()

    async def refresh(self) -> FetchResult:
        """Operator-triggered refresh of the match list."""
        return await self.load_matches()

    def previous_page(self) -> bool:
        moved = paginator.previous_page(self.state)
        if moved:
            self.render()
        return moved

    def next_page(self) -> bool:
        moved = paginator.next_page(self.state)
        if moved:
            self.render()
        return moved

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self) -> paginator.Page:
        """Push the current page, counts and navigation state to the view."""
        page = paginator.current_page(self.state)

        self.view.set_match_count(page.total)
        self.view.set_pagination(page.has_previous, page.has_next)

        if page.is_empty:
            self.view.show_empty_state(EMPTY_STATE_MESSAGE)
        else:
            self.view.set_rows(build_rows(page.rows, self.lookup_base_url))
        return page
