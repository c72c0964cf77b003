"""Ratings and encyclopedia tools (toolsets ``ratings`` and ``encyclopedia``)."""

from __future__ import annotations

from langchain_core.tools import BaseTool, StructuredTool
from pydantic import BaseModel, Field

from .base import ToolContext, to_json

RATINGS_TOOLSET = "ratings"
ENCYCLOPEDIA_TOOLSET = "encyclopedia"

# Cap on section text handed back to the model per lookup.
CONTEXT_SECTION_LIMIT = 2


class RatingArgs(BaseModel):
    imdb_id: str = Field(description="IMDb id of the movie, e.g. tt1375666")


class CompareRatingsArgs(BaseModel):
    imdb_ids: list[str] = Field(description="IMDb ids of the movies to compare")


class FilterRatingsArgs(BaseModel):
    imdb_ids: list[str] = Field(description="IMDb ids of the candidate movies")
    minimum_rating: float = Field(description="Minimum IMDb rating (0-10)")


class EntityArgs(BaseModel):
    entity_name: str = Field(description="Movie title, actor name, or director name")
    entity_type: str = Field(
        default="movie", description="One of 'movie', 'actor' or 'director'"
    )


def build_ratings_tools(ctx: ToolContext) -> list[BaseTool]:
    agent = ctx.ratings

    async def get_movie_ratings(imdb_id: str) -> str:
        return (await agent.get_ratings(imdb_id)).model_dump_json()

    async def compare_movie_ratings(imdb_ids: list[str]) -> str:
        return (await agent.compare_ratings(imdb_ids)).model_dump_json()

    async def filter_movies_by_rating(imdb_ids: list[str], minimum_rating: float) -> str:
        results = await agent.filter_by_rating(imdb_ids, minimum_rating)
        return to_json([r.model_dump() for r in results])

    return [
        StructuredTool.from_function(
            coroutine=get_movie_ratings,
            name="get_movie_ratings",
            description=(
                "Get IMDb, Rotten Tomatoes and Metacritic ratings plus box office "
                "for a movie by its IMDb id."
            ),
            args_schema=RatingArgs,
        ),
        StructuredTool.from_function(
            coroutine=compare_movie_ratings,
            name="compare_movie_ratings",
            description="Compare several movies by IMDb rating and report the highest rated.",
            args_schema=CompareRatingsArgs,
        ),
        StructuredTool.from_function(
            coroutine=filter_movies_by_rating,
            name="filter_movies_by_rating",
            description="Keep only the movies whose IMDb rating is at least the minimum.",
            args_schema=FilterRatingsArgs,
        ),
    ]


def build_encyclopedia_tools(ctx: ToolContext) -> list[BaseTool]:
    agent = ctx.encyclopedia

    async def get_enhanced_info(entity_name: str, entity_type: str = "movie") -> str:
        return (await agent.get_enhanced_info(entity_name, entity_type)).model_dump_json()

    async def get_chat_context(entity_name: str, entity_type: str = "movie") -> str:
        snapshot = await agent.get_enhanced_info(entity_name, entity_type)
        sections = dict(list(snapshot.sections.items())[:CONTEXT_SECTION_LIMIT])
        return to_json(
            {
                "entity": snapshot.entity_name,
                "summary": snapshot.summary or "",
                "facts": snapshot.structured_facts,
                "sections": sections,
                "confidence": snapshot.confidence,
            }
        )

    return [
        StructuredTool.from_function(
            coroutine=get_enhanced_info,
            name="get_enhanced_info",
            description=(
                "Get rich background on a movie, actor or director from Wikipedia "
                "and Wikidata: summary, structured facts, related people, sections."
            ),
            args_schema=EntityArgs,
        ),
        StructuredTool.from_function(
            coroutine=get_chat_context,
            name="get_chat_context",
            description=(
                "Get a compact summary, key facts and a confidence score for an "
                "entity, suitable for trivia in conversation."
            ),
            args_schema=EntityArgs,
        ),
    ]
