from __future__ import annotations

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from releasekeeper.utils.http import HTTPClient
from releasekeeper.exceptions import FetchError, NetworkError


def _response(status_code: int, text: str = "") -> MagicMock:
    response = MagicMock(spec=httpx.Response)
    response.status_code = status_code
    response.text = text
    return response


@pytest.mark.unit
class TestHTTPClientInit:
    """Tests for HTTPClient initialization and configuration."""

    def test_default_values(self) -> None:
        """Test HTTPClient initializes with default settings."""
        client = HTTPClient()

        assert client.timeout == 30
        assert client.max_attempts == 2
        assert client.rate_limit_delay == 0.0
        assert client.verify_ssl is True
        assert client.max_concurrency == 10
        assert client.user_agent.startswith("releasekeeper/")
        assert client._client is None

    def test_custom_values(self) -> None:
        """Test constructor parameters are stored."""
        client = HTTPClient(
            timeout=5,
            max_attempts=4,
            rate_limit_delay=0.5,
            verify_ssl=False,
            user_agent="Custom/1.0",
            max_concurrency=3,
        )

        assert client.timeout == 5
        assert client.max_attempts == 4
        assert client.rate_limit_delay == 0.5
        assert client.verify_ssl is False
        assert client.user_agent == "Custom/1.0"
        assert client.max_concurrency == 3

    def test_zero_attempts_rejected(self) -> None:
        """Test at least one attempt is required."""
        with pytest.raises(ValueError, match="max_attempts"):
            HTTPClient(max_attempts=0)


@pytest.mark.unit
class TestHTTPClientLifecycle:
    """Tests for client creation and cleanup."""

    @pytest.mark.asyncio
    async def test_context_manager(self) -> None:
        """Test the context manager opens and closes the client."""
        client = HTTPClient()

        async with client:
            assert isinstance(client._client, httpx.AsyncClient)

        assert client._client is None

    @pytest.mark.asyncio
    async def test_session_created_once(self) -> None:
        """Test repeated use reuses the same httpx client."""
        client = HTTPClient()

        first = client._session()

        assert client._session() is first
        await client.close()

    @pytest.mark.asyncio
    async def test_close_without_client(self) -> None:
        """Test close is a no-op before any request."""
        client = HTTPClient()

        await client.close()

        assert client._client is None


@pytest.mark.unit
class TestHTTPClientRequestWithRetry:
    """Tests for the retry logic."""

    @pytest.mark.asyncio
    async def test_successful_request(self) -> None:
        """Test a 200 response returns without retries."""
        client = HTTPClient(max_attempts=2)

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = _response(200)

            async with client:
                response = await client.request("GET", "https://example.com")

        assert response.status_code == 200
        assert mock_request.call_count == 1

    @pytest.mark.asyncio
    async def test_strips_quotes_and_whitespace(self) -> None:
        """Test the URL is cleaned before the request."""
        client = HTTPClient()

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = _response(200)

            async with client:
                await client.request("GET", '  "https://example.com/x"  ')

        mock_request.assert_called_once_with("GET", "https://example.com/x")

    @pytest.mark.asyncio
    async def test_404_raises_fetch_error(self) -> None:
        """Test a missing document raises FetchError immediately."""
        client = HTTPClient(max_attempts=3)

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = _response(404)

            async with client:
                with pytest.raises(FetchError) as exc_info:
                    await client.request("GET", "https://example.com/x")

        assert exc_info.value.status_code == 404
        assert mock_request.call_count == 1

    @pytest.mark.asyncio
    async def test_4xx_not_retried(self) -> None:
        """Test client errors raise NetworkError without retrying."""
        client = HTTPClient(max_attempts=3)

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = _response(403, "forbidden")

            async with client:
                with pytest.raises(NetworkError) as exc_info:
                    await client.request("GET", "https://example.com")

        assert exc_info.value.status_code == 403
        assert exc_info.value.response_body == "forbidden"
        assert mock_request.call_count == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "failure",
        [
            httpx.TimeoutException("timeout"),
            httpx.ConnectError("refused"),
        ],
        ids=["timeout", "network"],
    )
    async def test_transient_errors_retried(self, failure: Exception) -> None:
        """Test timeouts and network errors are retried."""
        client = HTTPClient(max_attempts=2)

        with patch.object(
            httpx.AsyncClient, "request", new_callable=AsyncMock
        ) as mock_request, patch(
            "releasekeeper.utils.http.asyncio.sleep", new_callable=AsyncMock
        ) as mock_sleep:
            mock_request.side_effect = [failure, _response(200)]

            async with client:
                response = await client.request("GET", "https://example.com")

        assert response.status_code == 200
        assert mock_request.call_count == 2
        assert mock_sleep.await_count == 1

    @pytest.mark.asyncio
    async def test_5xx_retried(self) -> None:
        """Test server errors are retried."""
        client = HTTPClient(max_attempts=2)

        with patch.object(
            httpx.AsyncClient, "request", new_callable=AsyncMock
        ) as mock_request, patch(
            "releasekeeper.utils.http.asyncio.sleep", new_callable=AsyncMock
        ):
            mock_request.side_effect = [_response(503), _response(200)]

            async with client:
                response = await client.request("GET", "https://example.com")

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_attempts_exhausted(self) -> None:
        """Test NetworkError after the last attempt fails."""
        client = HTTPClient(max_attempts=3)

        with patch.object(
            httpx.AsyncClient, "request", new_callable=AsyncMock
        ) as mock_request, patch(
            "releasekeeper.utils.http.asyncio.sleep", new_callable=AsyncMock
        ) as mock_sleep:
            mock_request.side_effect = httpx.ConnectError("refused")

            async with client:
                with pytest.raises(NetworkError, match="after 3 attempt"):
                    await client.request("GET", "https://example.com")

        assert mock_request.call_count == 3
        # No sleep after the final attempt
        assert mock_sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_single_attempt_no_sleep(self) -> None:
        """Test a single attempt fails without backing off."""
        client = HTTPClient(max_attempts=1)

        with patch.object(
            httpx.AsyncClient, "request", new_callable=AsyncMock
        ) as mock_request, patch(
            "releasekeeper.utils.http.asyncio.sleep", new_callable=AsyncMock
        ) as mock_sleep:
            mock_request.side_effect = httpx.TimeoutException("timeout")

            async with client:
                with pytest.raises(NetworkError):
                    await client.request("GET", "https://example.com")

        mock_sleep.assert_not_awaited()


@pytest.mark.unit
class TestHTTPClientRateLimit:
    """Tests for request spacing."""

    @pytest.mark.asyncio
    async def test_no_delay_by_default(self) -> None:
        """Test rate limiting is skipped without a delay."""
        client = HTTPClient()

        with patch("releasekeeper.utils.http.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await client._wait_for_slot()
            await client._wait_for_slot()

        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_enforces_delay(self) -> None:
        """Test back-to-back requests wait for the remaining delay."""
        client = HTTPClient(rate_limit_delay=1.0)

        with patch("releasekeeper.utils.http.time.time", return_value=100.0), patch(
            "releasekeeper.utils.http.asyncio.sleep", new_callable=AsyncMock
        ) as mock_sleep:
            await client._wait_for_slot()
            await client._wait_for_slot()

        mock_sleep.assert_awaited_once_with(1.0)


@pytest.mark.unit
class TestHTTPClientGetText:
    """Tests for get_text."""

    @pytest.mark.asyncio
    async def test_returns_body(self) -> None:
        """Test the decoded body is returned."""
        client = HTTPClient()

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = _response(200, "<project/>")

            async with client:
                text = await client.get_text("https://example.com/views/current")

        assert text == "<project/>"
        assert mock_request.call_args.args == ("GET", "https://example.com/views/current")
