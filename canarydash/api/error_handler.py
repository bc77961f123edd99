"""Unified error handling for backend fetches.

Every failure at an endpoint boundary collapses into a FetchResult carrying
one of three kinds. Nothing here retries; recovery is the next poll cycle.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional
import logging

import httpx

from canarydash.core.models import Endpoint
from canarydash.api.response_parser import ResponseError

logger = logging.getLogger(__name__)


class FetchErrorKind(Enum):
    """Categorize fetch failures."""
    NETWORK = "network"            # transport failure, timeout, DNS
    HTTP_STATUS = "http_status"    # non-2xx response
    MALFORMED = "malformed"        # invalid JSON or unexpected shape


class APIError(Exception):
    """Base exception for API errors."""
    pass


class FetchError(APIError):
    """A fetch failed; ``kind`` says how."""

    def __init__(self, message: str, kind: FetchErrorKind, status_code: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code


HTTP_STATUS_MESSAGES = {
    400: "Bad request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Endpoint not found",
    500: "Internal server error",
    502: "Bad gateway",
    503: "Service unavailable",
    504: "Gateway timeout",
}


def get_error_message(status_code: int) -> str:
    """
    Get a readable message for an HTTP status code.

    Args:
        status_code: HTTP status code

    Returns:
        Error message string
    """
    return HTTP_STATUS_MESSAGES.get(
        status_code,
        f"Unexpected status (HTTP {status_code})"
    )


def handle_http_status(status_code: int, context: str = "") -> None:
    """
    Raise for any non-success HTTP status.

    Args:
        status_code: HTTP status code from the backend
        context: Additional context for the error message

    Raises:
        FetchError: With kind HTTP_STATUS for non-2xx codes
    """
    if 200 <= status_code < 300:
        return

    msg = f"{get_error_message(status_code)} (HTTP {status_code})"
    if context:
        msg = f"{msg} ({context})"
    raise FetchError(msg, FetchErrorKind.HTTP_STATUS, status_code=status_code)


def categorize_error(exception: Exception) -> FetchErrorKind:
    """
    Map an exception raised during a fetch to its kind.

    Args:
        exception: Exception to categorize

    Returns:
        FetchErrorKind
    """
    if isinstance(exception, FetchError):
        return exception.kind
    if isinstance(exception, ResponseError):
        return FetchErrorKind.MALFORMED
    if isinstance(exception, httpx.TransportError):
        return FetchErrorKind.NETWORK
    if isinstance(exception, httpx.HTTPStatusError):
        return FetchErrorKind.HTTP_STATUS
    # Anything else escaping an adapter is treated as a connectivity problem
    return FetchErrorKind.NETWORK


@dataclass(frozen=True)
class FetchResult:
    """Uniform outcome of one endpoint fetch.

    Attributes:
        endpoint: Endpoint that was fetched
        ok: Whether the fetch succeeded
        payload: Parsed payload on success (may be None, e.g. no current
            performance window)
        error_kind: Failure kind, None on success
        message: Failure description, "" on success
        elapsed: Request duration in seconds
    """
    endpoint: Endpoint
    ok: bool
    payload: Any = None
    error_kind: Optional[FetchErrorKind] = None
    message: str = ""
    elapsed: float = 0.0

    @classmethod
    def success(cls, endpoint: Endpoint, payload: Any, elapsed: float = 0.0) -> "FetchResult":
        return cls(endpoint=endpoint, ok=True, payload=payload, elapsed=elapsed)

    @classmethod
    def failure(cls, endpoint: Endpoint, exception: Exception, elapsed: float = 0.0) -> "FetchResult":
        return cls(
            endpoint=endpoint,
            ok=False,
            error_kind=categorize_error(exception),
            message=str(exception) or type(exception).__name__,
            elapsed=elapsed,
        )
