"""Chat model client and tool-calling loop."""

from .deps import get_llm  # noqa: F401
from .messages import message_text  # noqa: F401
from .tool_loop import ToolCallingChat  # noqa: F401
