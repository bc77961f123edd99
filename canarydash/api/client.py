"""Match-alerting backend API client."""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Optional

import httpx

from canarydash.core.models import Endpoint
from canarydash.api.connection_pool import ConnectionPoolManager
from canarydash.api.error_handler import (
    FetchError,
    FetchErrorKind,
    FetchResult,
    handle_http_status,
)
from canarydash.api.response_parser import (
    validate_response,
    parse_metrics,
    parse_performance,
    parse_matches,
)

logger = logging.getLogger(__name__)

ENDPOINT_PATHS = {
    Endpoint.METRICS: '/api/metrics',
    Endpoint.PERFORMANCE: '/api/metrics/performance',
    Endpoint.MATCHES: '/api/matches/recent',
}

DEFAULT_PERFORMANCE_WINDOW = 60
DEFAULT_CLEAR_PATH = '/api/matches/clear'


class DashboardClient:
    """
    Client for the match-alerting backend.

    Each fetch method catches every failure at the endpoint boundary and
    returns a FetchResult instead of raising, so a failing endpoint can
    never stop the poller. Cancellation always propagates.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        client: Optional[httpx.AsyncClient] = None,
        connection_pool_manager: Optional[ConnectionPoolManager] = None
    ):
        """
        Initialize API client.

        Args:
            config: Configuration dictionary
            client: httpx.AsyncClient configured with the backend base URL
            connection_pool_manager: Optional ConnectionPoolManager for health tracking
        """
        self.client = client
        self.connection_pool_manager = connection_pool_manager

        polling = config.get('polling', {})
        self.performance_window = polling.get(
            'performance_window_minutes', DEFAULT_PERFORMANCE_WINDOW
        )
        self.clear_path = config.get('api', {}).get('clear_path') or DEFAULT_CLEAR_PATH

        self._request_count = 0
        self._failure_count = 0

    async def fetch_metrics(self) -> FetchResult:
        """Fetch aggregate counters from /api/metrics."""
        return await self._fetch(Endpoint.METRICS, None, parse_metrics)

    async def fetch_performance(self, minutes: Optional[int] = None) -> FetchResult:
        """
        Fetch the performance window.

        The payload is None when the backend has no current window yet.
        """
        params = {'minutes': minutes or self.performance_window}
        return await self._fetch(Endpoint.PERFORMANCE, params, parse_performance)

    async def fetch_recent_matches(self, minutes: int) -> FetchResult:
        """
        Fetch matches detected within the last ``minutes``.

        The payload is the list of matches in server order.
        """
        return await self._fetch(Endpoint.MATCHES, {'minutes': minutes}, parse_matches)

    async def _fetch(
        self,
        endpoint: Endpoint,
        params: Optional[Dict[str, Any]],
        parser: Callable[[Dict[str, Any]], Any]
    ) -> FetchResult:
        start_time = time.monotonic()
        self._request_count += 1
        try:
            data = await self._get_json(endpoint, params)
            payload = parser(data)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            elapsed = time.monotonic() - start_time
            self._failure_count += 1
            result = FetchResult.failure(endpoint, e, elapsed=elapsed)
            logger.error(
                f"Error loading {endpoint.value} ({result.error_kind.value}): {result.message}"
            )
            return result

        elapsed = time.monotonic() - start_time
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Loaded {endpoint.value} in {elapsed:.3f}s")
        return FetchResult.success(endpoint, payload, elapsed=elapsed)

    async def _get_json(
        self,
        endpoint: Endpoint,
        params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Perform a GET and decode the JSON object body.

        Raises:
            FetchError: For transport failures and non-2xx statuses
            ResponseError: For malformed bodies
        """
        path = ENDPOINT_PATHS[endpoint]

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"API Request: GET {path} params={params or {}}")

        try:
            response = await self.client.get(path, params=params)
        except httpx.TransportError as e:
            await self._record_transport_error()
            raise FetchError(f"Network error: {str(e) or type(e).__name__}", FetchErrorKind.NETWORK)

        if self.connection_pool_manager:
            self.connection_pool_manager.record_success()

        handle_http_status(response.status_code, context=path)
        return validate_response(response.content)

    async def _record_transport_error(self) -> None:
        if self.connection_pool_manager and self.connection_pool_manager.record_transport_error():
            self.client = await self.connection_pool_manager.reset_client()

    async def clear_matches(self) -> bool:
        """
        Ask the backend to clear its in-memory match cache.

        Returns:
            True if the backend accepted the request
        """
        logger.info(f"Requesting match clear: POST {self.clear_path}")
        try:
            response = await self.client.post(self.clear_path)
            handle_http_status(response.status_code, context=self.clear_path)
        except asyncio.CancelledError:
            raise
        except httpx.TransportError as e:
            logger.error(f"Clear matches failed: network error: {e}")
            return False
        except FetchError as e:
            logger.error(f"Clear matches failed: {e}")
            return False

        logger.info("Backend match cache cleared")
        return True

    def get_stats(self) -> Dict[str, int]:
        return {
            'requests': self._request_count,
            'failures': self._failure_count,
        }
