"""Defensive parsing of the model's structured reply.

The model is asked for ``{"message": ..., "movies": [{"id", "name"}]}``
but may wrap it in a Markdown code fence, surround it with prose, use
the legacy key spellings or emit numeric ids.  ``message`` is required;
``movies`` may be absent or null.  Parsing never raises:
callers get a ``ReplyParseResult`` holding either the reply or the
reason it was rejected.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from reelchat.core.errors import MalformedReply

NO_MOVIES_FOUND = "No movies were found."

_FENCE_RE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\n?(.*?)\n?```$", re.DOTALL)


def strip_code_fence(text: str) -> str:
    """Remove surrounding Markdown code fences (```json ... ```), if any.

    Pure and idempotent: text without a fence is returned trimmed.
    """
    stripped = text.strip()
    while (match := _FENCE_RE.match(stripped)) is not None:
        stripped = match.group(1).strip()
    return stripped


class MovieReference(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "MovieId", "movieId"))
    name: str = Field(
        default="", validation_alias=AliasChoices("name", "MovieName", "movieName")
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        if isinstance(value, bool) or value is None:
            raise ValueError("movie id must be a string or a number")
        return str(value).strip()


class StructuredReply(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(
        validation_alias=AliasChoices("message", "SystemMessage", "systemMessage"),
    )
    movies: list[MovieReference] = Field(
        default_factory=list,
        validation_alias=AliasChoices("movies", "MovieList", "movieList"),
    )

    @field_validator("movies", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    def movie_ids(self) -> list[str]:
        return [movie.id for movie in self.movies]


@dataclass(frozen=True)
class ReplyParseResult:
    reply: StructuredReply | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.reply is not None

    def unwrap(self) -> StructuredReply:
        if self.reply is None:
            raise MalformedReply(self.error or "unparseable reply")
        return self.reply


def _load_object(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise
        return json.loads(text[start : end + 1])


def parse_structured_reply(raw: str) -> ReplyParseResult:
    """Parse model output into a ``StructuredReply``; never raises."""
    text = strip_code_fence(raw or "")
    if not text:
        return ReplyParseResult(error="empty reply")
    try:
        data = _load_object(text)
    except json.JSONDecodeError as exc:
        return ReplyParseResult(error=f"invalid JSON: {exc.msg}")
    if not isinstance(data, dict):
        return ReplyParseResult(error="reply is not a JSON object")
    try:
        return ReplyParseResult(reply=StructuredReply.model_validate(data))
    except ValidationError as exc:
        return ReplyParseResult(error=f"unexpected reply shape: {exc.error_count()} error(s)")
