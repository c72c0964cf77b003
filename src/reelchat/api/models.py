"""Pydantic models for the chat API.

Field names on the wire follow the public contract (``ChatId``,
``Input``, ``FunnyFact``, ``Messages``); Python attributes stay
snake_case.
"""

from pydantic import BaseModel, ConfigDict, Field

from reelchat.core.service.models import TranscriptEntry

# Maximum length for a single user message
ASK_INPUT_MAX_LENGTH = 2048


class StartChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chat_id: str = Field(alias="ChatId", description="New chat id")


class AskRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    input: str = Field(
        alias="Input",
        min_length=1,
        max_length=ASK_INPUT_MAX_LENGTH,
        description="The user's message",
    )


class AskResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    funny_fact: str | None = Field(
        default=None,
        alias="FunnyFact",
        description="Supplementary fact about the entity the user mentioned",
    )
    messages: list[TranscriptEntry] = Field(
        default_factory=list,
        alias="Messages",
        description="Visible transcript, oldest first",
    )


class HealthResponse(BaseModel):
    status: str = "ok"
