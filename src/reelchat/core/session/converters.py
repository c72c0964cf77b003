"""ConversationMessage <-> LangChain message conversion.

Only the direction needed to replay history to the model lives here;
the tool loop builds its own intermediate messages.
"""

from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
)

from .models import (
    AssistantEntry,
    ConversationMessage,
    SystemEntry,
    UserEntry,
)


def entry_to_message(entry: ConversationMessage) -> BaseMessage | None:
    """Convert one stored entry; tool entries yield ``None``.

    A tool result is only valid right after the AI message that requested
    it, and those intermediate AI messages are never stored.
    """
    if isinstance(entry, SystemEntry):
        return SystemMessage(content=entry.content)
    if isinstance(entry, UserEntry):
        return HumanMessage(content=entry.content)
    if isinstance(entry, AssistantEntry):
        return AIMessage(content=entry.content)
    return None


def history_to_messages(history: list[ConversationMessage]) -> list[BaseMessage]:
    """Replay a stored history as LangChain messages, oldest first."""
    return [m for entry in history if (m := entry_to_message(entry)) is not None]
