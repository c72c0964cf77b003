"""Tests for the tool registry and the individual toolsets."""

from __future__ import annotations

import json
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from reelchat.core.knowledge.models import KnowledgeSnapshot, RatingResult
from reelchat.core.tools.base import ToolContext, split_ids
from reelchat.core.tools.calendar_tools import relative_day, relative_month, relative_year
from reelchat.core.tools.registry import ToolRegistry


def _context() -> ToolContext:
    tmdb = MagicMock()
    tmdb.search_movies = AsyncMock(
        return_value=[{"id": 27205, "title": "Inception", "release_date": "2010-07-15"}]
    )
    tmdb.discover = AsyncMock(return_value=[])
    tmdb.movie_details = AsyncMock(
        return_value={
            "id": 27205,
            "title": "Inception",
            "imdb_id": "tt1375666",
            "genres": [{"id": 28, "name": "Action"}],
        }
    )
    ratings = MagicMock()
    ratings.get_ratings = AsyncMock(
        return_value=RatingResult(title="Inception", imdb_rating="8.8", success=True)
    )
    encyclopedia = MagicMock()
    encyclopedia.get_enhanced_info = AsyncMock(
        return_value=KnowledgeSnapshot(
            entity_name="Inception",
            summary="A heist film.",
            sections={"Plot": "a", "Production": "b", "Reception": "c"},
            confidence=0.6,
        )
    )
    return ToolContext(tmdb=tmdb, ratings=ratings, encyclopedia=encyclopedia)


def _by_name(registry: ToolRegistry) -> dict:
    return {tool.name: tool for tool in registry.get_tools()}


class TestToolRegistry:
    def test_all_toolsets(self):
        registry = ToolRegistry(ToolRegistry.known_toolsets(), _context())
        assert set(_by_name(registry)) == {
            "get_genres",
            "search_people",
            "search_movies",
            "get_movie_details",
            "search_keywords",
            "discover_movies",
            "get_year",
            "get_month",
            "get_day",
            "get_movie_ratings",
            "compare_movie_ratings",
            "filter_movies_by_rating",
            "get_enhanced_info",
            "get_chat_context",
        }

    def test_subset(self):
        registry = ToolRegistry(["calendar"], _context())
        assert set(_by_name(registry)) == {"get_year", "get_month", "get_day"}

    def test_unknown_toolset(self):
        with pytest.raises(NotImplementedError, match="astrology"):
            ToolRegistry(["tmdb", "astrology"], _context())

    def test_get_tools_returns_copy(self):
        registry = ToolRegistry(["calendar"], _context())
        registry.get_tools().clear()
        assert len(registry.get_tools()) == 3


class TestMovieTools:
    @pytest.mark.asyncio
    async def test_search_movies(self):
        ctx = _context()
        tools = _by_name(ToolRegistry(["tmdb"], ctx))

        raw = await tools["search_movies"].ainvoke({"movie_title": "Inception"})

        assert json.loads(raw) == [
            {"movie_id": "27205", "movie_name": "Inception", "release_date": "2010-07-15"}
        ]
        ctx.tmdb.search_movies.assert_awaited_once_with("Inception", year=None)

    @pytest.mark.asyncio
    async def test_movie_details_lists_genre_names(self):
        tools = _by_name(ToolRegistry(["tmdb"], _context()))
        details = json.loads(await tools["get_movie_details"].ainvoke({"movie_id": "27205"}))
        assert details["imdb_id"] == "tt1375666"
        assert details["genres"] == ["Action"]

    @pytest.mark.asyncio
    async def test_discover_splits_id_lists(self):
        ctx = _context()
        tools = _by_name(ToolRegistry(["tmdb"], ctx))

        await tools["discover_movies"].ainvoke({"cast_ids": "31, 500", "genre_ids": "35"})

        kwargs = ctx.tmdb.discover.await_args.kwargs
        assert kwargs["cast_ids"] == [31, 500]
        assert kwargs["genre_ids"] == [35]
        assert kwargs["keyword_ids"] == []

    def test_split_ids(self):
        assert split_ids(None) == []
        assert split_ids("1,2, 3,") == [1, 2, 3]


class TestKnowledgeTools:
    @pytest.mark.asyncio
    async def test_get_movie_ratings(self):
        tools = _by_name(ToolRegistry(["ratings"], _context()))
        payload = json.loads(await tools["get_movie_ratings"].ainvoke({"imdb_id": "tt1375666"}))
        assert payload["imdb_rating"] == "8.8"
        assert payload["success"] is True

    @pytest.mark.asyncio
    async def test_chat_context_is_compact(self):
        ctx = _context()
        tools = _by_name(ToolRegistry(["encyclopedia"], ctx))

        payload = json.loads(
            await tools["get_chat_context"].ainvoke({"entity_name": "Inception"})
        )

        assert payload["summary"] == "A heist film."
        assert list(payload["sections"]) == ["Plot", "Production"]
        assert payload["confidence"] == 0.6
        ctx.encyclopedia.get_enhanced_info.assert_awaited_once_with("Inception", "movie")


class TestCalendar:
    def test_relative_year(self):
        today = date(2024, 3, 15)
        assert relative_year(0, today) == "2024"
        assert relative_year(1, today) == "2023"
        assert relative_year(-1, today) == "2025"

    def test_relative_month_wraps_years(self):
        today = date(2024, 1, 31)
        assert relative_month(0, today) == "2024-01"
        assert relative_month(1, today) == "2023-12"
        assert relative_month(13, today) == "2022-12"
        assert relative_month(-12, today) == "2025-01"

    def test_relative_day(self):
        today = date(2024, 3, 1)
        assert relative_day(1, today) == "2024-02-29"
        assert relative_day(-1, today) == "2024-03-02"

    def test_tools_use_today(self):
        tools = _by_name(ToolRegistry(["calendar"], _context()))
        assert tools["get_year"].invoke({"years_from_current": 0}) == str(date.today().year)
