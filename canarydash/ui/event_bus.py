"""
In-process event delivery for the dashboard

The polling controller and the log handler publish; the Textual app
subscribes. Producers and subscribers share one asyncio loop, so the bus is
a typed fan-out over an asyncio.Queue drained by a single worker.
"""

import asyncio
import inspect
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EventBus:
    """
    Typed publish/subscribe queue

    Subscribers register per event class. A failing subscriber is logged
    and counted; delivery to the others continues.

    Example:
        bus = EventBus()
        bus.subscribe(FetchCompletedEvent, on_fetch)
        app.run_worker(bus.process_events())
        await bus.publish(event)
    """

    def __init__(self):
        self._handlers: dict[type, list[Callable]] = {}
        self._queue: asyncio.Queue = asyncio.Queue()
        self._running = False
        self._stats = {'events_processed': 0, 'errors': 0, 'dropped': 0}

    def subscribe(self, event_type: type, callback: Callable) -> None:
        """Register a sync or async callback for ``event_type``."""
        self._handlers.setdefault(event_type, []).append(callback)
        logger.debug(f"{event_type.__name__}: {len(self._handlers[event_type])} subscriber(s)")

    def unsubscribe(self, event_type: type, callback: Callable) -> None:
        handlers = self._handlers.get(event_type, [])
        if callback in handlers:
            handlers.remove(callback)
        else:
            logger.warning(f"No such {event_type.__name__} subscriber to remove")

    async def publish(self, event: Any) -> None:
        await self._queue.put(event)

    def publish_sync(self, event: Any) -> None:
        """
        Enqueue from synchronous code such as a logging handler.

        With no running loop the event is dropped and counted. Never logs,
        since the caller may itself be a log handler.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self._stats['dropped'] += 1
            return
        self._queue.put_nowait(event)

    async def _dispatch(self, event: Any) -> None:
        for callback in tuple(self._handlers.get(type(event), ())):
            try:
                result = callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                self._stats['errors'] += 1
                logger.exception(f"{type(event).__name__} subscriber failed")

    async def process_events(self) -> None:
        """
        Drain the queue until cancelled.

        Intended to run as a worker: ``app.run_worker(bus.process_events())``.
        """
        self._running = True
        logger.debug("Event bus started")
        try:
            while True:
                event = await self._queue.get()
                try:
                    self._stats['events_processed'] += 1
                    await self._dispatch(event)
                finally:
                    self._queue.task_done()
        finally:
            self._running = False

    def _discard_pending(self) -> int:
        discarded = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
            discarded += 1
        return discarded

    async def stop(self, timeout: float = 1.0) -> None:
        """Give queued events ``timeout`` seconds to deliver, then discard the rest."""
        try:
            await asyncio.wait_for(self._queue.join(), timeout=timeout)
        except asyncio.TimeoutError:
            discarded = self._discard_pending()
            self._stats['dropped'] += discarded
            logger.debug(f"Event bus discarded {discarded} undelivered event(s)")
        logger.debug(
            f"Event bus stopped after {self._stats['events_processed']} event(s), "
            f"{self._stats['errors']} subscriber error(s)"
        )

    def get_stats(self) -> dict[str, int]:
        return {
            **self._stats,
            'queue_size': self._queue.qsize(),
            'subscriber_count': sum(len(h) for h in self._handlers.values()),
        }

    @property
    def is_processing(self) -> bool:
        return self._running
