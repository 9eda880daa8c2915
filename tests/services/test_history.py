"""Tests for local session history."""

# pylint: disable=redefined-outer-name

import json
from unittest.mock import AsyncMock

import pytest

from focusbloom.models.session import Session
from focusbloom.services.history import SessionHistory
from focusbloom.services.storage import MemoryStore, StoreError


def _session(session_id, duration=25, session_type="work", completed=False):
    return Session(
        id=session_id,
        duration=duration,
        type=session_type,
        completed=completed,
        start_time="2024-01-01T00:00:00Z",
        end_time="2024-01-01T00:25:00Z" if completed else None,
    )


@pytest.fixture
def history(store):
    return SessionHistory(store)


class TestSessionHistory:
    @pytest.mark.asyncio
    async def test_empty_store(self, history):
        assert await history.get_all() == []

    @pytest.mark.asyncio
    async def test_add_persists_camel_case(self, history, store):
        await history.add(_session("a"))
        raw = json.loads(store.data["pomodoro_sessions"])
        assert raw[0]["startTime"] == "2024-01-01T00:00:00Z"
        assert raw[0]["id"] == "a"

    @pytest.mark.asyncio
    async def test_add_replaces_same_id(self, history):
        await history.add(_session("a", duration=25))
        await history.add(_session("a", duration=50))
        sessions = await history.get_all()
        assert len(sessions) == 1
        assert sessions[0].duration == 50

    @pytest.mark.asyncio
    async def test_mark_completed(self, history):
        await history.add(_session("a"))
        done = await history.mark_completed("a", "2024-01-01T00:25:00Z")
        assert done.completed is True
        assert (await history.get("a")).end_time == "2024-01-01T00:25:00Z"

    @pytest.mark.asyncio
    async def test_mark_completed_errors(self, history):
        await history.add(_session("a", completed=True))
        with pytest.raises(ValueError):
            await history.mark_completed("a")
        with pytest.raises(KeyError):
            await history.mark_completed("missing")

    @pytest.mark.asyncio
    async def test_reassign_id(self, history):
        await history.add(_session("local-1"))
        await history.reassign_id("local-1", "srv-1")
        assert await history.get("local-1") is None
        assert await history.get("srv-1") is not None

    @pytest.mark.asyncio
    async def test_reassign_unknown_id_does_not_write(self, history, store):
        store.set = AsyncMock()
        await history.reassign_id("local-x", "srv-x")
        store.set.assert_not_called()

    @pytest.mark.asyncio
    async def test_remove(self, history):
        await history.add(_session("a"))
        assert await history.remove("a") is True
        assert await history.remove("a") is False

    @pytest.mark.asyncio
    async def test_clear(self, history, store):
        await history.add(_session("a"))
        await history.clear()
        assert "pomodoro_sessions" not in store.data

    @pytest.mark.asyncio
    async def test_stats(self, history):
        await history.add(_session("a", duration=25, completed=True))
        await history.add(_session("b", duration=5, session_type="short-break", completed=True))
        await history.add(_session("c", duration=25))
        stats = await history.stats()
        assert stats.total_sessions == 3
        assert stats.completed_sessions == 2
        assert stats.total_minutes == 30
        assert stats.work_sessions == 1
        assert stats.break_sessions == 1


class TestUnreadableHistory:
    @pytest.mark.asyncio
    async def test_corrupt_data_reads_empty(self):
        history = SessionHistory(MemoryStore({"pomodoro_sessions": "not json"}))
        assert await history.get_all() == []

    @pytest.mark.asyncio
    async def test_store_read_error_reads_empty(self, store):
        store.get = AsyncMock(side_effect=StoreError("io"))
        assert await SessionHistory(store).get_all() == []
