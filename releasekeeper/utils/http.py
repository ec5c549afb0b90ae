"""
HTTP client utilities for releasekeeper.

:class:`HTTPClient` wraps a lazily created :class:`httpx.AsyncClient` and
adds what release-history downloads need: bounded concurrency, optional
spacing between requests, and retries with exponential backoff for
timeouts, connection failures and 5xx answers. Client errors are never
retried; a 404 becomes :class:`~releasekeeper.exceptions.FetchError` so the
fetcher can report the project as unknown to the update server.
"""

from __future__ import annotations

import time
import httpx
import random
import asyncio
from typing import Any, Optional

from releasekeeper.utils.logger import get_logger
from releasekeeper.__version__ import __version__
from releasekeeper.exceptions import FetchError, NetworkError
from releasekeeper.constants import (
    DEFAULT_CONCURRENCY,
    DEFAULT_MAX_FETCH_ATTEMPTS,
    DEFAULT_TIMEOUT,
    USER_AGENT_TEMPLATE,
)

logger = get_logger("http")

#: Failures worth another attempt.
_TRANSIENT_ERRORS = (httpx.TimeoutException, httpx.NetworkError)

_ACCEPT = "application/xml, text/xml;q=0.9, */*;q=0.1"


class HTTPClient:
    """Async HTTP client with retries, request spacing and a concurrency cap.

    Args:
        timeout: Request timeout in seconds.
        max_attempts: Attempts per request, including the first one.
        rate_limit_delay: Minimum spacing (seconds) between requests.
        verify_ssl: Whether to verify SSL certificates.
        user_agent: Custom User-Agent header value.
        max_concurrency: Maximum number of requests in flight.

    Example:
        >>> async with HTTPClient(timeout=10) as client:
        ...     xml = await client.get_text(
        ...         "https://updates.drupal.org/release-history/views/current"
        ...     )
    """

    def __init__(
        self,
        *,
        timeout: int = DEFAULT_TIMEOUT,
        max_attempts: int = DEFAULT_MAX_FETCH_ATTEMPTS,
        rate_limit_delay: float = 0.0,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None,
        max_concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.timeout = timeout
        self.max_attempts = max_attempts
        self.rate_limit_delay = rate_limit_delay
        self.verify_ssl = verify_ssl
        self.user_agent = user_agent or USER_AGENT_TEMPLATE.format(version=__version__)
        self.max_concurrency = max_concurrency

        self._client: Optional[httpx.AsyncClient] = None
        self._next_slot: float = 0.0
        self._slot_lock = asyncio.Lock()
        self._in_flight = asyncio.Semaphore(max_concurrency)

    async def __aenter__(self) -> "HTTPClient":
        self._session()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    def _session(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                http2=True,
                verify=self.verify_ssl,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent, "Accept": _ACCEPT},
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying connection pool, if one was opened."""
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()

    async def _wait_for_slot(self) -> None:
        """Space requests at least ``rate_limit_delay`` seconds apart."""
        if self.rate_limit_delay <= 0:
            return

        async with self._slot_lock:
            wait = self._next_slot - time.time()
            if wait > 0:
                await asyncio.sleep(wait)
            self._next_slot = max(time.time(), self._next_slot) + self.rate_limit_delay

    @staticmethod
    def _backoff(retry: int) -> float:
        """Delay before retry number ``retry`` (1-based), with jitter."""
        return 2 ** (retry - 1) + random.uniform(0.0, 0.3)

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request, retrying transient failures.

        Raises:
            FetchError: The server answered 404.
            NetworkError: Any other 4xx answer, or every attempt failed.
        """
        url = url.strip().strip("\"'")
        session = self._session()
        failure: Optional[BaseException] = None

        for attempt in range(1, self.max_attempts + 1):
            if attempt > 1:
                delay = self._backoff(attempt - 1)
                logger.debug("Retrying %s in %.2fs", url, delay)
                await asyncio.sleep(delay)

            await self._wait_for_slot()
            try:
                async with self._in_flight:
                    response = await session.request(method, url, **kwargs)
            except _TRANSIENT_ERRORS as exc:
                failure = exc
                logger.warning(
                    "%s for %s (attempt %d/%d)",
                    type(exc).__name__,
                    url,
                    attempt,
                    self.max_attempts,
                )
                continue

            status = response.status_code
            if status >= 500:
                failure = NetworkError(f"HTTP {status} from {url}", url=url, status_code=status)
                logger.warning(
                    "HTTP %d for %s (attempt %d/%d)", status, url, attempt, self.max_attempts
                )
                continue
            if status == 404:
                raise FetchError(f"Resource not found: {url}", url=url, status_code=404)
            if status >= 400:
                raise NetworkError(
                    f"HTTP {status} error for {url}",
                    url=url,
                    status_code=status,
                    response_body=response.text,
                )
            return response

        raise NetworkError(
            f"Request failed after {self.max_attempts} attempt(s): {url}", url=url
        ) from failure

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def get_text(self, url: str, **kwargs: Any) -> str:
        """GET ``url`` and return the decoded body."""
        response = await self.get(url, **kwargs)
        return response.text
