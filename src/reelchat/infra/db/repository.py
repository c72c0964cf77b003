"""Chat session store backed by the ``chat_sessions`` table.

``SessionRepository`` wraps session lifecycle; callers only see
``ChatSession`` values and the core error taxonomy.  Every write is a
single transaction: it is either fully applied or not at all.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reelchat.core.errors import NotFound, SessionConflict, StorageError
from reelchat.core.session.models import (
    ChatSession,
    ConversationMessage,
    dump_history,
    load_history,
)
from reelchat.infra.telemetry import (
    ATTR_HISTORY_LENGTH,
    ATTR_SESSION_ID,
    ATTR_SESSION_VERSION,
    SPAN_SESSION_LOAD,
    SPAN_SESSION_SAVE,
    tracer,
)

from .models import ChatSessionRow

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (SQLAlchemyError, OSError)


def _row_to_session(row: ChatSessionRow) -> ChatSession:
    return ChatSession(
        id=row.id,
        history=load_history(row.history),
        funny_fact=row.funny_fact,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SessionRepository:
    """Async CRUD over persisted chat sessions."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        self._session_factory = session_factory

    async def create(self, chat: ChatSession) -> ChatSession:
        """Insert a new session.

        Raises:
            StorageError: the id already exists or the store is unreachable.
        """
        with tracer.start_as_current_span(SPAN_SESSION_SAVE) as span:
            span.set_attribute(ATTR_SESSION_ID, chat.id)
            row = ChatSessionRow(
                id=chat.id,
                history=dump_history(chat.history),
                funny_fact=chat.funny_fact,
                version=chat.version,
            )
            try:
                async with self._session_factory() as session:
                    session.add(row)
                    await session.commit()
                    await session.refresh(row)
            except IntegrityError as exc:
                raise StorageError(f"Chat session {chat.id} already exists") from exc
            except _TRANSPORT_ERRORS as exc:
                raise StorageError(f"Could not create chat session {chat.id}") from exc
            return _row_to_session(row)

    async def get(self, session_id: str) -> ChatSession:
        """Load a session by id.

        Raises:
            NotFound: no session with this id.
            StorageError: the store is unreachable.
        """
        with tracer.start_as_current_span(SPAN_SESSION_LOAD) as span:
            span.set_attribute(ATTR_SESSION_ID, session_id)
            try:
                async with self._session_factory() as session:
                    row = await session.get(ChatSessionRow, session_id)
            except _TRANSPORT_ERRORS as exc:
                raise StorageError(f"Could not load chat session {session_id}") from exc
            if row is None:
                raise NotFound(f"Chat session {session_id} not found")
            chat = _row_to_session(row)
            span.set_attribute(ATTR_SESSION_VERSION, chat.version)
            span.set_attribute(ATTR_HISTORY_LENGTH, len(chat.history))
            return chat

    async def replace(
        self,
        session_id: str,
        new_history: list[ConversationMessage],
        new_fact: str | None,
        expected_version: int | None = None,
    ) -> ChatSession:
        """Overwrite history and fact in one conditional UPDATE.

        When ``expected_version`` is given the row is only updated if its
        version still matches; the version is bumped on every write.

        Raises:
            NotFound: no session with this id.
            SessionConflict: the stored version differs from ``expected_version``.
            StorageError: the store is unreachable.
        """
        with tracer.start_as_current_span(SPAN_SESSION_SAVE) as span:
            span.set_attribute(ATTR_SESSION_ID, session_id)
            span.set_attribute(ATTR_HISTORY_LENGTH, len(new_history))

            stmt = (
                update(ChatSessionRow)
                .where(ChatSessionRow.id == session_id)
                .values(
                    history=dump_history(new_history),
                    funny_fact=new_fact,
                    version=ChatSessionRow.version + 1,
                    updated_at=func.now(),
                )
                .execution_options(synchronize_session=False)
            )
            if expected_version is not None:
                stmt = stmt.where(ChatSessionRow.version == expected_version)

            try:
                async with self._session_factory() as session:
                    result = await session.execute(stmt)
                    if result.rowcount == 0:
                        await session.rollback()
                        exists = await session.scalar(
                            select(ChatSessionRow.id).where(
                                ChatSessionRow.id == session_id
                            )
                        )
                        if exists is None:
                            raise NotFound(f"Chat session {session_id} not found")
                        raise SessionConflict(session_id, expected_version or 0)
                    await session.commit()
                    row = await session.get(
                        ChatSessionRow, session_id, populate_existing=True
                    )
            except _TRANSPORT_ERRORS as exc:
                raise StorageError(
                    f"Could not update chat session {session_id}"
                ) from exc

            if row is None:
                raise NotFound(f"Chat session {session_id} not found")
            chat = _row_to_session(row)
            span.set_attribute(ATTR_SESSION_VERSION, chat.version)
            logger.debug(
                "Saved chat session %s (version=%d, messages=%d)",
                session_id,
                chat.version,
                len(chat.history),
            )
            return chat
