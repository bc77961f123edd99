"""Event types for UI updates.

Events are immutable dataclasses published on the EventBus by the polling
controller and the logging handler, and consumed by the Textual UI.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class LogEntryEvent:
    """Emitted for log messages.

    Attributes:
        level: Logging level (logging.DEBUG, INFO, WARNING, ERROR, CRITICAL)
        message: Formatted log message
        timestamp: When the log was generated
        source: Name of the originating logger
    """
    level: int
    message: str
    timestamp: datetime
    source: str = ""


@dataclass(frozen=True)
class FetchCompletedEvent:
    """Emitted after every endpoint fetch has been applied to state.

    Attributes:
        endpoint: Endpoint name ('metrics', 'matches', 'performance')
        ok: Whether the fetch succeeded
        error_kind: Failure kind value, None on success
        elapsed: Request duration in seconds
        timestamp: When the outcome was applied
    """
    endpoint: str
    ok: bool
    error_kind: Optional[str]
    elapsed: float
    timestamp: datetime
