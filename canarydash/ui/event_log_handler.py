"""Route log records to the dashboard's log panel via the event bus."""

import logging
from datetime import datetime

from canarydash.ui.events import LogEntryEvent
from canarydash.ui.event_bus import EventBus


class EventLogHandler(logging.Handler):
    """Publishes every record it accepts as a LogEntryEvent."""

    def __init__(self, event_bus: EventBus, level: int = logging.NOTSET):
        super().__init__(level)
        self.event_bus = event_bus
        self.published = 0

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.event_bus.publish_sync(LogEntryEvent(
                level=record.levelno,
                message=self.format(record),
                timestamp=datetime.fromtimestamp(record.created),
                source=record.name,
            ))
        except Exception:
            self.handleError(record)
        else:
            self.published += 1


def create_event_handler(
    event_bus: EventBus,
    level: int = logging.INFO,
    format_string: str = '%(message)s',
) -> EventLogHandler:
    """
    Build a formatted EventLogHandler.

    The caller attaches it; the CLI passes it to logging.basicConfig
    alongside the file handler.
    """
    handler = EventLogHandler(event_bus, level=level)
    handler.setFormatter(logging.Formatter(format_string))
    return handler
