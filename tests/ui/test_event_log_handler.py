"""Unit tests for EventLogHandler."""

import asyncio
import logging

import pytest

from canarydash.ui.event_bus import EventBus
from canarydash.ui.event_log_handler import EventLogHandler, create_event_handler
from canarydash.ui.events import LogEntryEvent


@pytest.mark.asyncio
async def test_log_records_become_events():
    bus = EventBus()
    received = []
    bus.subscribe(LogEntryEvent, received.append)

    handler = EventLogHandler(bus, level=logging.INFO)
    handler.setFormatter(logging.Formatter('%(levelname)s %(message)s'))
    test_logger = logging.getLogger("canarydash.test.handler")
    test_logger.addHandler(handler)
    test_logger.setLevel(logging.DEBUG)

    try:
        task = asyncio.create_task(bus.process_events())
        test_logger.debug("filtered out")
        test_logger.warning("backend unreachable")

        await bus.stop()
        task.cancel()
    finally:
        test_logger.removeHandler(handler)

    assert len(received) == 1
    assert received[0].level == logging.WARNING
    assert received[0].message == "WARNING backend unreachable"
    assert received[0].source == "canarydash.test.handler"
    assert handler.published == 1


def test_records_without_loop_are_dropped_by_bus():
    bus = EventBus()
    handler = EventLogHandler(bus)
    record = logging.LogRecord("x", logging.ERROR, __file__, 1, "boom", None, None)

    handler.emit(record)

    assert bus.get_stats()['dropped'] == 1


def test_create_event_handler_formats_messages():
    handler = create_event_handler(EventBus(), level=logging.ERROR, format_string='[%(name)s] %(message)s')

    assert handler.level == logging.ERROR
    assert handler not in logging.root.handlers
    record = logging.LogRecord("x", logging.ERROR, __file__, 1, "boom", None, None)
    assert handler.format(record) == "[x] boom"
