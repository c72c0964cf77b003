"""Shared pieces for tool builders."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable

from langchain_core.tools import BaseTool

from reelchat.core.knowledge import EncyclopedicAgent, RatingsAgent
from reelchat.core.movies.tmdb import TMDbClient


@dataclass(frozen=True)
class ToolContext:
    """Collaborators the tools call into; injected, never global."""

    tmdb: TMDbClient
    ratings: RatingsAgent
    encyclopedia: EncyclopedicAgent


ToolsetBuilder = Callable[[ToolContext], list[BaseTool]]


def to_json(payload: Any) -> str:
    """Serialise a tool result for the model."""
    return json.dumps(payload, ensure_ascii=False, default=str)


def split_ids(raw: str | None) -> list[int]:
    """Parse a comma-separated id list (``"12, 34"``) into integers."""
    if not raw:
        return []
    return [int(part) for part in raw.split(",") if part.strip()]
