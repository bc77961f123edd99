"""
Poll scheduler

Fires a fixed-period cycle that launches each polling job as an independent
asyncio task. Jobs never wait for each other, and a slow job never delays
the next tick. Per-resource in-flight tracking decides what happens when a
tick finds the previous fetch for a resource still running.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional, Set

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 5.0
DEFAULT_STALE_AFTER_CYCLES = 3

Job = Callable[[], Awaitable[object]]


class OverlapPolicy(Enum):
    """What a tick does when a resource's previous fetch is still in flight."""
    SKIP = "skip"      # leave a recent fetch alone, skip this resource
    ALLOW = "allow"    # start another fetch alongside it


class PollScheduler:
    """
    Cancellable fixed-period scheduler for the dashboard pollers.

    No backoff, no jitter, no retries: a failed cycle is simply followed by
    the next one. A job that raises is logged and never stops the loop.

    Example:
        scheduler = PollScheduler(
            {'metrics': controller.load_metrics, 'matches': controller.load_matches},
            interval=5.0,
        )
        scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        jobs: Dict[str, Job],
        interval: float = DEFAULT_INTERVAL_SECONDS,
        overlap: OverlapPolicy = OverlapPolicy.ALLOW,
        stale_after: int = DEFAULT_STALE_AFTER_CYCLES
    ):
        """
        Args:
            jobs: Resource name -> coroutine function run every cycle
            interval: Seconds between cycles
            overlap: Policy for resources whose previous fetch is in flight
            stale_after: Under SKIP, cycles after which an unfinished fetch no
                longer blocks a new one for the same resource
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        if stale_after < 1:
            raise ValueError(f"stale_after must be at least 1, got {stale_after}")

        self.jobs = dict(jobs)
        self.interval = interval
        self.overlap = OverlapPolicy(overlap)
        self.stale_after = stale_after

        self._loop_task: Optional[asyncio.Task] = None
        self._in_flight: Dict[str, Set[asyncio.Task]] = {name: set() for name in self.jobs}
        self._started = False
        self._launched_at: Dict[asyncio.Task, int] = {}

        self.cycles = 0
        self.skipped: Dict[str, int] = {name: 0 for name in self.jobs}
        self.stale_relaunches: Dict[str, int] = {name: 0 for name in self.jobs}
        self.errors = 0

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def is_in_flight(self, name: str) -> bool:
        """Check whether a fetch for ``name`` is still running."""
        return bool(self._in_flight.get(name))

    def start(self) -> None:
        """
        Start the repeating cycle.

        Must be called from a running event loop. The first cycle fires one
        interval after start. Starting twice is a no-op.
        """
        if self._started:
            logger.warning("Poll scheduler already started - ignoring second start")
            return

        self._started = True
        self._loop_task = asyncio.create_task(self._run(), name="poll-scheduler")
        logger.info(
            f"Poll scheduler started: every {self.interval:g}s, "
            f"overlap={self.overlap.value}, jobs={', '.join(self.jobs)}"
        )

    async def _run(self) -> None:
        try:
            while True:
                await asyncio.sleep(self.interval)
                self.tick()
        except asyncio.CancelledError:
            logger.debug("Poll scheduler loop cancelled")
            raise

    def _blocked(self, name: str) -> bool:
        """Under SKIP, only fetches younger than ``stale_after`` cycles hold a resource back."""
        if self.overlap is not OverlapPolicy.SKIP:
            return False
        ages = [self.cycles - self._launched_at[task] for task in self._in_flight[name]]
        if any(age < self.stale_after for age in ages):
            return True
        if ages:
            self.stale_relaunches[name] += 1
            if self.stale_after in ages:
                logger.warning(
                    f"{name} fetch unfinished after {self.stale_after} cycles, no longer waiting for it"
                )
        return False

    def tick(self) -> None:
        """Run one cycle: launch every job not blocked by the overlap policy."""
        self.cycles += 1
        for name, job in self.jobs.items():
            if self._blocked(name):
                self.skipped[name] += 1
                logger.debug(f"Cycle {self.cycles}: {name} still in flight, skipping")
                continue
            self._launch(name, job)

    def _launch(self, name: str, job: Job) -> None:
        task = asyncio.create_task(job(), name=f"poll-{name}-{self.cycles}")
        self._launched_at[task] = self.cycles
        self._in_flight[name].add(task)
        task.add_done_callback(lambda t, n=name: self._job_done(n, t))

    def _job_done(self, name: str, task: asyncio.Task) -> None:
        self._in_flight[name].discard(task)
        self._launched_at.pop(task, None)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.errors += 1
            logger.error(
                f"Poll job {name} raised unexpectedly: {exc}",
                exc_info=(type(exc), exc, exc.__traceback__)
            )

    async def stop(self) -> None:
        """Cancel the cycle and every in-flight job, and wait for them to finish."""
        pending = [task for tasks in self._in_flight.values() for task in tasks]
        if self._loop_task is not None:
            pending.append(self._loop_task)

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        self._loop_task = None
        logger.info(f"Poll scheduler stopped after {self.cycles} cycles")

    def get_stats(self) -> dict:
        return {
            'cycles': self.cycles,
            'skipped': dict(self.skipped),
            'stale_relaunches': dict(self.stale_relaunches),
            'errors': self.errors,
            'in_flight': {name: len(tasks) for name, tasks in self._in_flight.items()},
        }
