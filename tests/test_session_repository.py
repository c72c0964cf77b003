"""Tests for the SQLAlchemy session repository (SQLite in memory)."""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from reelchat.core.errors import NotFound, SessionConflict, StorageError
from reelchat.core.session.models import (
    AssistantEntry,
    ChatSession,
    SystemEntry,
    ToolEntry,
    UserEntry,
)
from reelchat.infra.db import Base, SessionRepository


@pytest_asyncio.fixture
async def store():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield SessionRepository(async_sessionmaker(engine, expire_on_commit=False))
    await engine.dispose()


def _session(session_id: str = "abc1234") -> ChatSession:
    return ChatSession(id=session_id, history=[SystemEntry(content="system")])


class TestCreateAndGet:
    @pytest.mark.asyncio
    async def test_round_trip(self, store):
        created = await store.create(_session())
        assert created.version == 0
        assert created.created_at is not None

        loaded = await store.get("abc1234")
        assert loaded.history == [SystemEntry(content="system")]
        assert loaded.funny_fact is None

    @pytest.mark.asyncio
    async def test_duplicate_id(self, store):
        await store.create(_session())
        with pytest.raises(StorageError):
            await store.create(_session())

    @pytest.mark.asyncio
    async def test_missing(self, store):
        with pytest.raises(NotFound):
            await store.get("missing")


class TestReplace:
    @pytest.mark.asyncio
    async def test_overwrites_history_and_fact(self, store):
        await store.create(_session())
        history = [
            SystemEntry(content="system"),
            UserEntry(content="find inception"),
            ToolEntry(content="[]", tool_call_id="call_1"),
            AssistantEntry(content='{"message": "ok", "movies": []}'),
        ]

        saved = await store.replace("abc1234", history, "a fact", expected_version=0)

        assert saved.version == 1
        loaded = await store.get("abc1234")
        assert loaded.history == history
        assert loaded.funny_fact == "a fact"
        assert loaded.version == 1

    @pytest.mark.asyncio
    async def test_fact_can_be_cleared(self, store):
        await store.create(_session())
        await store.replace("abc1234", [SystemEntry(content="system")], "a fact")
        await store.replace("abc1234", [SystemEntry(content="system")], None)
        assert (await store.get("abc1234")).funny_fact is None

    @pytest.mark.asyncio
    async def test_stale_version_conflicts(self, store):
        await store.create(_session())
        await store.replace("abc1234", [SystemEntry(content="first")], None, expected_version=0)

        with pytest.raises(SessionConflict):
            await store.replace(
                "abc1234", [SystemEntry(content="second")], None, expected_version=0
            )

        loaded = await store.get("abc1234")
        assert loaded.history == [SystemEntry(content="first")]
        assert loaded.version == 1

    @pytest.mark.asyncio
    async def test_missing(self, store):
        with pytest.raises(NotFound):
            await store.replace("missing", [], None, expected_version=0)
