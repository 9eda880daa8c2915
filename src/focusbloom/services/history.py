"""Local session history kept in the durable store."""

from __future__ import annotations

import json

from pydantic import TypeAdapter, ValidationError

from focusbloom.models.session import Session, SessionStats
from focusbloom.services.storage import KeyValueStore, StoreError
from focusbloom.utils.logger import get_logger

logger = get_logger("history")

_sessions_adapter = TypeAdapter(list[Session])


class SessionHistory:
    """Sessions recorded on this device, synced or not."""

    def __init__(self, store: KeyValueStore, storage_key: str = "pomodoro_sessions"):
        self.store = store
        self.storage_key = storage_key

    async def get_all(self) -> list[Session]:
        """All locally known sessions. Unreadable data yields an empty list."""
        try:
            raw = await self.store.get(self.storage_key)
        except StoreError as e:
            logger.error("error getting sessions: %s", e)
            return []
        if not raw:
            return []
        try:
            return _sessions_adapter.validate_python(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("discarding malformed session history: %s", e)
            return []

    async def _save(self, sessions: list[Session]) -> None:
        await self.store.set(
            self.storage_key, json.dumps([s.to_wire() for s in sessions])
        )

    async def get(self, session_id: str) -> Session | None:
        for session in await self.get_all():
            if session.id == session_id:
                return session
        return None

    async def add(self, session: Session) -> Session:
        """Record a session, replacing any entry with the same id."""
        sessions = [s for s in await self.get_all() if s.id != session.id]
        sessions.append(session)
        await self._save(sessions)
        return session

    async def mark_completed(self, session_id: str, end_time: str | None = None) -> Session:
        """Complete a recorded session.

        Raises:
            KeyError: If no session with that id is recorded
            ValueError: If the session is already completed
        """
        sessions = await self.get_all()
        for index, session in enumerate(sessions):
            if session.id == session_id:
                sessions[index] = session.mark_completed(end_time)
                await self._save(sessions)
                return sessions[index]
        raise KeyError(f"Session {session_id} not found in local history")

    async def reassign_id(self, local_id: str, server_id: str) -> None:
        """Adopt the id the server assigned to a locally created session."""
        if local_id == server_id:
            return
        sessions = await self.get_all()
        changed = False
        for index, session in enumerate(sessions):
            if session.id == local_id:
                sessions[index] = session.model_copy(update={"id": server_id})
                changed = True
        if changed:
            await self._save(sessions)
            logger.info("local session %s is now %s", local_id, server_id)

    async def remove(self, session_id: str) -> bool:
        sessions = await self.get_all()
        kept = [s for s in sessions if s.id != session_id]
        if len(kept) == len(sessions):
            return False
        await self._save(kept)
        return True

    async def clear(self) -> None:
        await self.store.remove(self.storage_key)

    async def stats(self) -> SessionStats:
        return SessionStats.from_sessions(await self.get_all())
