"""SQLAlchemy ORM models.

The table is managed by Alembic migrations.  The ``Base.metadata``
naming convention keeps constraint names deterministic across
environments.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# ---------------------------------------------------------------------------
# Declarative base with naming convention
# ---------------------------------------------------------------------------

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Shared declarative base."""


Base.metadata.naming_convention = NAMING_CONVENTION

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TABLE_CHAT_SESSIONS = "chat_sessions"
SESSION_ID_LENGTH = 32

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests).
HistoryJSON = JSON().with_variant(JSONB(), "postgresql")


# ---------------------------------------------------------------------------
# Chat sessions table
# ---------------------------------------------------------------------------


class ChatSessionRow(Base):
    """One row per chat session; the history is a JSON document."""

    __tablename__ = TABLE_CHAT_SESSIONS

    id: Mapped[str] = mapped_column(String(SESSION_ID_LENGTH), primary_key=True)
    history: Mapped[list[dict[str, Any]]] = mapped_column(
        HistoryJSON, nullable=False, default=list
    )
    funny_fact: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )
