"""Client-facing transcript entries produced by a turn."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from reelchat.core.movies.models import MovieViewModel


class UserTurnEntry(BaseModel):
    role: Literal["user"] = "user"
    text: str


class AssistantTurnEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    role: Literal["assistant"] = "assistant"
    text: str
    movie_list: list[MovieViewModel] = Field(
        default_factory=list, alias="movieList"
    )


TranscriptEntry = Annotated[
    Union[UserTurnEntry, AssistantTurnEntry], Field(discriminator="role")
]


@dataclass
class TurnResult:
    """Ordered visible transcript plus the session's current fact."""

    messages: list[UserTurnEntry | AssistantTurnEntry] = field(default_factory=list)
    funny_fact: str | None = None
