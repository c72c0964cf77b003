"""Persisted conversation state."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

ROLE_SYSTEM: Literal["system"] = "system"
ROLE_USER: Literal["user"] = "user"
ROLE_ASSISTANT: Literal["assistant"] = "assistant"
ROLE_TOOL: Literal["tool"] = "tool"


class SystemEntry(BaseModel):
    role: Literal["system"] = ROLE_SYSTEM
    content: str


class UserEntry(BaseModel):
    role: Literal["user"] = ROLE_USER
    content: str


class AssistantEntry(BaseModel):
    role: Literal["assistant"] = ROLE_ASSISTANT
    content: str


class ToolEntry(BaseModel):
    role: Literal["tool"] = ROLE_TOOL
    content: str
    tool_call_id: str = ""


ConversationMessage = Annotated[
    Union[SystemEntry, UserEntry, AssistantEntry, ToolEntry],
    Field(discriminator="role"),
]

conversation_adapter: TypeAdapter[list[ConversationMessage]] = TypeAdapter(
    list[ConversationMessage]
)


class ChatSession(BaseModel):
    """A chat session: ordered history plus the latest supplementary fact.

    ``version`` increases by one on every successful replace and is used
    for optimistic concurrency control.
    """

    id: str
    history: list[ConversationMessage] = Field(default_factory=list)
    funny_fact: str | None = None
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


def dump_history(history: list[ConversationMessage]) -> list[dict]:
    """Serialise history to plain JSON-ready dicts."""
    return conversation_adapter.dump_python(history, mode="json")


def load_history(raw: list[dict] | None) -> list[ConversationMessage]:
    """Validate stored history back into typed entries."""
    return conversation_adapter.validate_python(raw or [])
