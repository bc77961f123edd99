"""
Shared HTTP connection for the dashboard pollers

One httpx.AsyncClient serves all three polled resources. After a run of
consecutive transport errors the pool is rebuilt, which drops connections
the backend has silently closed.
"""

import asyncio
import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8080"
RESET_AFTER_ERRORS = 5
KEEPALIVE_CONNECTIONS = 6


class ConnectionPoolManager:
    """
    Owns the shared AsyncClient

    Three resources are polled each cycle and cycles may overlap. The pool
    is uncapped by default, so requests hung on one endpoint never hold up
    the others.

    Example:
        pool = ConnectionPoolManager(config)
        client = await pool.get_client()
        try:
            ...
        finally:
            await pool.close_client()
    """

    def __init__(self, config: dict, max_connections: Optional[int] = None):
        """
        Args:
            config: Configuration dictionary (reads the ``api`` section)
            max_connections: Connection cap, None for unlimited
        """
        api = config.get("api", {})
        self.base_url = api.get("base_url") or DEFAULT_BASE_URL
        self.request_timeout = api.get("request_timeout")
        self.max_connections = max_connections

        self.client: Optional[httpx.AsyncClient] = None
        self.lock = asyncio.Lock()

        self.error_streak = 0
        self.reset_threshold = RESET_AFTER_ERRORS
        self.resets = 0

    def _timeout(self) -> httpx.Timeout:
        # No configured timeout means wait indefinitely
        if not self.request_timeout:
            return httpx.Timeout(None)
        return httpx.Timeout(self.request_timeout, connect=min(5.0, self.request_timeout))

    def _build_client(self) -> httpx.AsyncClient:
        transport = httpx.AsyncHTTPTransport(
            limits=httpx.Limits(
                max_connections=self.max_connections,
                max_keepalive_connections=KEEPALIVE_CONNECTIONS,
                keepalive_expiry=30.0,
            ),
            retries=0,
        )
        logger.debug(
            f"Opening connection pool to {self.base_url} "
            f"(max_connections={self.max_connections}, timeout={self.request_timeout})"
        )
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self._timeout(),
            transport=transport,
            headers={"Accept": "application/json"},
        )

    def _is_open(self) -> bool:
        return self.client is not None and not self.client.is_closed

    async def get_client(self) -> httpx.AsyncClient:
        """Return the shared client, opening it on first use."""
        async with self.lock:
            if not self._is_open():
                self.client = self._build_client()
            return self.client

    async def reset_client(self) -> httpx.AsyncClient:
        """Close the current pool and open a fresh one."""
        async with self.lock:
            if self._is_open():
                await self.client.aclose()
            self.client = self._build_client()
            self.error_streak = 0
            self.resets += 1
            logger.warning(
                f"Rebuilt connection pool to {self.base_url} after repeated transport errors"
            )
            return self.client

    async def close_client(self) -> None:
        async with self.lock:
            if self._is_open():
                await self.client.aclose()
                logger.debug("Connection pool closed")
            self.client = None

    def record_transport_error(self) -> bool:
        """
        Count a transport failure.

        Returns:
            True once the streak reaches the reset threshold
        """
        self.error_streak += 1
        return self.error_streak >= self.reset_threshold

    def record_success(self) -> None:
        self.error_streak = 0

    def get_stats(self) -> dict:
        return {
            "client_active": self._is_open(),
            "base_url": self.base_url,
            "request_timeout": self.request_timeout,
            "error_streak": self.error_streak,
            "resets": self.resets,
        }
