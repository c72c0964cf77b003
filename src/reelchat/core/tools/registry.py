"""Tool registry: builds the langchain tools the model may call."""

from __future__ import annotations

from langchain_core.tools import BaseTool

from . import calendar_tools, knowledge_tools, movie_tools
from .base import ToolContext, ToolsetBuilder


class ToolRegistry:
    """Creates tool instances for the configured toolsets."""

    _known_toolsets: dict[str, ToolsetBuilder] = {
        movie_tools.TOOLSET: movie_tools.build_movie_tools,
        calendar_tools.TOOLSET: calendar_tools.build_calendar_tools,
        knowledge_tools.RATINGS_TOOLSET: knowledge_tools.build_ratings_tools,
        knowledge_tools.ENCYCLOPEDIA_TOOLSET: knowledge_tools.build_encyclopedia_tools,
    }

    def __init__(self, toolsets: list[str], context: ToolContext):
        self._tools: list[BaseTool] = []
        for name in toolsets:
            builder = self._known_toolsets.get(name)
            if builder is None:
                raise NotImplementedError(f"Toolset '{name}' is not supported.")
            self._tools.extend(builder(context))

    @classmethod
    def known_toolsets(cls) -> list[str]:
        return list(cls._known_toolsets)

    def get_tools(self) -> list[BaseTool]:
        """Get loaded tools."""
        return self._tools[:]
