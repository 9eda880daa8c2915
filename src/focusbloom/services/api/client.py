"""HTTP client for the FocusBloom session API."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from focusbloom.models.config_models import APIConfig
from focusbloom.utils.logger import get_logger

from .errors import APIConnectionError, APIError, APIStatusError, APITimeoutError

logger = get_logger("api")

TokenProvider = Callable[[], Awaitable[str | None]]


class APIClient:
    """HTTP client with per-attempt timeout and fixed-delay retry."""

    def __init__(
        self,
        config: APIConfig,
        token_provider: TokenProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.base_url = config.base_url
        self.token_provider = token_provider
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "APIClient":
        """Enter the async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit the async context manager and ensure the client is closed."""
        await self.close()

    async def _get_headers(self) -> dict[str, str]:
        """Get HTTP headers, with a bearer token when one is stored."""
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.token_provider is not None:
            token = await self.token_provider()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            # Deadline is enforced per attempt with wait_for
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=None,
                follow_redirects=True,
                transport=self._transport,
            )
        self._client.headers.update(await self._get_headers())
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _log(self, message: str, *args: Any) -> None:
        if self.config.enable_logging:
            logger.debug(message, *args)

    async def _attempt(
        self, method: str, url: str, json: dict[str, Any] | None
    ) -> dict[str, Any]:
        client = await self._get_client()
        send_body = json is not None and method in ("POST", "PUT")
        try:
            response = await asyncio.wait_for(
                client.request(method, url, json=json if send_body else None),
                timeout=self.config.timeout_ms / 1000,
            )
        except asyncio.TimeoutError as e:
            raise APITimeoutError(f"Request timeout after {self.config.timeout_ms}ms") from e
        except httpx.HTTPError as e:
            raise APIConnectionError(str(e) or type(e).__name__) from e

        if not response.is_success:
            raise APIStatusError(response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise APIError(f"Invalid JSON in response from {method} {url}") from e

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        retry: int | None = None,
    ) -> dict[str, Any]:
        """Make an HTTP request and return the decoded JSON body.

        Every failure (timeout, network error, non-2xx status) is retried
        ``retry`` more times with a fixed delay, then re-raised.
        """
        if retry is None:
            retry = self.config.retry_attempts

        url = path if path.startswith("/") else f"/{path}"

        last_exception: APIError | None = None
        for attempt in range(retry + 1):
            self._log("API request: %s %s%s body=%s", method, self.base_url, url, json)
            try:
                data = await self._attempt(method, url, json)
                self._log("API response: %s %s %s", method, url, data)
                return data
            except APIError as e:
                self._log("API request failed: %s %s (attempt %d): %s", method, url, attempt + 1, e)
                last_exception = e

            if attempt < retry:
                await asyncio.sleep(self.config.retry_delay_ms / 1000)

        if last_exception:
            raise last_exception
        raise RuntimeError("Request failed after all retries")

    async def get(self, path: str) -> dict[str, Any]:
        """Make a GET request."""
        return await self.request("GET", path)

    async def post(self, path: str, *, json: dict[str, Any] | None = None) -> dict[str, Any]:
        """Make a POST request."""
        return await self.request("POST", path, json=json)

    async def put(self, path: str, *, json: dict[str, Any] | None = None) -> dict[str, Any]:
        """Make a PUT request."""
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> dict[str, Any]:
        """Make a DELETE request."""
        return await self.request("DELETE", path)
