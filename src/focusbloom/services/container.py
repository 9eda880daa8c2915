"""Composition root wiring the sync subsystem together.

Every service is constructed here and handed to the ones that need it;
nothing in the core reaches for a module-level singleton.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from focusbloom.models.config_models import AppConfig
from focusbloom.services.api.client import APIClient
from focusbloom.services.api.sessions import SessionAPI
from focusbloom.services.connectivity import ConnectivityProber
from focusbloom.services.history import SessionHistory
from focusbloom.services.request_queue import RequestQueue
from focusbloom.services.session_service import SessionService
from focusbloom.services.storage import KeyValueStore, StoreError
from focusbloom.services.sync_service import SyncEngine
from focusbloom.utils.logger import get_logger

logger = get_logger("container")


@dataclass
class ServiceContainer:
    """Owns the lifecycle of every sync service for one process."""

    config: AppConfig
    store: KeyValueStore
    prober: ConnectivityProber
    queue: RequestQueue
    api_client: APIClient
    session_api: SessionAPI
    history: SessionHistory
    sessions: SessionService
    sync: SyncEngine

    @classmethod
    def create(
        cls,
        config: AppConfig,
        store: KeyValueStore,
        api_transport: httpx.AsyncBaseTransport | None = None,
        probe_transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ServiceContainer":
        """Build the object graph. Transports are injectable for tests."""

        async def load_token() -> str | None:
            try:
                raw = await store.get(config.storage.token_key)
            except StoreError as e:
                logger.warning("could not read auth token: %s", e)
                return None
            return raw.strip().strip('"') if raw else None

        prober = ConnectivityProber(
            probe_url=config.sync.probe_url,
            timeout_ms=config.sync.probe_timeout_ms,
            transport=probe_transport,
        )
        queue = RequestQueue(store, storage_key=config.sync.queue_key)
        api_client = APIClient(config.api, token_provider=load_token, transport=api_transport)
        session_api = SessionAPI(api_client, config.api)
        history = SessionHistory(store, storage_key=config.storage.sessions_key)
        sessions = SessionService(session_api, queue, history)
        sync = SyncEngine(
            queue, prober, session_api, on_session_synced=sessions.on_session_synced
        )
        return cls(
            config=config,
            store=store,
            prober=prober,
            queue=queue,
            api_client=api_client,
            session_api=session_api,
            history=history,
            sessions=sessions,
            sync=sync,
        )

    async def start(self) -> None:
        """Hydrate persisted state."""
        await self.queue.hydrate()
        logger.debug("container started, %d queued requests", len(self.queue))

    async def aclose(self) -> None:
        """Release network resources."""
        await self.api_client.close()
        await self.prober.close()

    async def __aenter__(self) -> "ServiceContainer":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
