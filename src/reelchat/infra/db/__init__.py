"""Async PostgreSQL infrastructure (ORM models, session repository)."""

from .deps import get_session_repository
from .models import TABLE_CHAT_SESSIONS, Base, ChatSessionRow
from .repository import SessionRepository

from reelchat.infra.db_engine import build_db, get_session_factory

__all__ = [
    "Base",
    "build_db",
    "ChatSessionRow",
    "get_session_factory",
    "get_session_repository",
    "SessionRepository",
    "TABLE_CHAT_SESSIONS",
]
