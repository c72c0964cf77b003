"""Helpers for LangChain chat messages."""

from langchain_core.messages import BaseMessage


def message_text(message: BaseMessage) -> str:
    """Plain text of a model reply (content may be a list of parts)."""
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(str(part.get("text", "")))
    return "".join(parts)
