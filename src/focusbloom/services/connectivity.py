"""Connectivity probing.

Answers "are we online?" with a HEAD request to a highly available URL,
raced against a timeout so the caller is never blocked indefinitely.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import httpx

from focusbloom.utils.logger import get_logger

logger = get_logger("connectivity")

DEFAULT_PROBE_URL = "https://www.google.com/favicon.ico"


@dataclass
class ConnectivityState:
    """Last known connectivity. Assumed online until a probe says otherwise."""

    is_connected: bool = True


class ConnectivityProber:
    """Reachability probe with a bounded timeout."""

    def __init__(
        self,
        probe_url: str = DEFAULT_PROBE_URL,
        timeout_ms: int = 5000,
        transport: httpx.AsyncBaseTransport | None = None,
        state: ConnectivityState | None = None,
    ):
        self.probe_url = probe_url
        self.timeout_ms = timeout_ms
        self.state = state or ConnectivityState()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            # The outer wait_for enforces the deadline
            self._client = httpx.AsyncClient(
                transport=self._transport,
                timeout=None,
                follow_redirects=True,
            )
        return self._client

    async def _probe(self) -> bool:
        response = await self._get_client().head(
            self.probe_url, headers={"Cache-Control": "no-cache"}
        )
        return response.status_code < 400

    async def check_connection(self) -> bool:
        """Probe the network and update the shared state. Never raises."""
        try:
            online = await asyncio.wait_for(self._probe(), timeout=self.timeout_ms / 1000)
        except asyncio.TimeoutError:
            logger.info("connectivity probe timed out after %sms", self.timeout_ms)
            online = False
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.info("connectivity probe failed: %s", e)
            online = False

        if online != self.state.is_connected:
            logger.info("connectivity changed: %s", "online" if online else "offline")
        self.state.is_connected = online
        return online

    def is_online(self) -> bool:
        """Last known state, without probing."""
        return self.state.is_connected

    def set_online(self, online: bool) -> None:
        """Override the last known state."""
        self.state.is_connected = online

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
