"""Tool-calling chat loop.

The model is invoked with the full history and the bound tools.  Every
tool call it makes is executed and answered with a ``ToolMessage``; the
loop repeats until the model replies without tool calls or the round
budget is spent, after which one last call without tools forces a
final answer.  Tool traffic stays inside the loop: only the final text
is returned.
"""

from __future__ import annotations

import logging
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, ToolCall, ToolMessage
from langchain_core.tools import BaseTool

from reelchat.core.errors import UpstreamError
from reelchat.core.service.metrics import TOOL_CALLS_TOTAL
from reelchat.infra.telemetry import (
    ATTR_TOOL_CALL_COUNT,
    ATTR_TOOL_ROUNDS,
    SPAN_TOOL_LOOP,
    tracer,
)

from .messages import message_text

logger = logging.getLogger(__name__)

PROVIDER = "llm"
JSON_RESPONSE_FORMAT = {"type": "json_object"}
TOOL_ERROR_STATUS = "error"


class ToolCallingChat:
    """Runs one model turn, executing tool calls until a final answer."""

    def __init__(
        self,
        llm: BaseChatModel,
        tools: list[BaseTool],
        max_rounds: int = 5,
        json_mode: bool = True,
    ) -> None:
        self._tools = {tool.name: tool for tool in tools}
        self._max_rounds = max_rounds
        extra: dict[str, Any] = (
            {"response_format": JSON_RESPONSE_FORMAT} if json_mode else {}
        )
        self._final = llm.bind(**extra) if extra else llm
        self._with_tools = llm.bind_tools(tools, **extra) if tools else self._final

    async def _invoke(self, runnable: Any, messages: list[BaseMessage]) -> AIMessage:
        try:
            return await runnable.ainvoke(messages)
        except Exception as exc:  # noqa: BLE001 - provider errors vary by client
            raise UpstreamError(f"Model call failed: {exc}", provider=PROVIDER) from exc

    async def _run_tool(self, call: ToolCall) -> ToolMessage:
        name = call["name"]
        call_id = call.get("id") or ""
        tool = self._tools.get(name)
        if tool is None:
            TOOL_CALLS_TOTAL.labels(tool_name=name, status="unknown").inc()
            return ToolMessage(
                content=f"Error: unknown tool '{name}'",
                tool_call_id=call_id,
                name=name,
                status=TOOL_ERROR_STATUS,
            )
        try:
            result = await tool.ainvoke(call["args"])
        except Exception as exc:  # noqa: BLE001 - reported back to the model
            logger.warning("Tool %s failed", name, exc_info=True)
            TOOL_CALLS_TOTAL.labels(tool_name=name, status="error").inc()
            return ToolMessage(
                content=f"Error: {exc}",
                tool_call_id=call_id,
                name=name,
                status=TOOL_ERROR_STATUS,
            )
        TOOL_CALLS_TOTAL.labels(tool_name=name, status="ok").inc()
        content = result if isinstance(result, str) else str(result)
        return ToolMessage(content=content, tool_call_id=call_id, name=name)

    async def run(self, messages: list[BaseMessage]) -> str:
        """Return the model's final text for ``messages``.

        Raises:
            UpstreamError: the model call itself failed.
        """
        with tracer.start_as_current_span(SPAN_TOOL_LOOP) as span:
            conversation = list(messages)
            calls = 0
            for round_no in range(self._max_rounds):
                reply = await self._invoke(self._with_tools, conversation)
                if not reply.tool_calls:
                    span.set_attribute(ATTR_TOOL_ROUNDS, round_no)
                    span.set_attribute(ATTR_TOOL_CALL_COUNT, calls)
                    return message_text(reply)
                conversation.append(reply)
                for call in reply.tool_calls:
                    calls += 1
                    conversation.append(await self._run_tool(call))

            logger.warning(
                "Tool round budget (%d) exhausted; forcing a final answer",
                self._max_rounds,
            )
            span.set_attribute(ATTR_TOOL_ROUNDS, self._max_rounds)
            span.set_attribute(ATTR_TOOL_CALL_COUNT, calls)
            reply = await self._invoke(self._final, conversation)
            return message_text(reply)
