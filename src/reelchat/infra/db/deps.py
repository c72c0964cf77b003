"""Per-request repository factories for the db package."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reelchat.infra.db_engine import get_session_factory

from .repository import SessionRepository


def get_session_repository(
    sf: Annotated[
        async_sessionmaker[AsyncSession],
        Depends(get_session_factory),
    ],
) -> SessionRepository:
    """Return the chat session repository for this app."""
    return SessionRepository(sf)
