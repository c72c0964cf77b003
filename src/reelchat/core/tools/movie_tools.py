"""TMDb search tools exposed to the model (toolset ``tmdb``)."""

from __future__ import annotations

from typing import Any

from langchain_core.tools import BaseTool, StructuredTool
from pydantic import BaseModel, Field

from .base import ToolContext, split_ids, to_json

TOOLSET = "tmdb"

MOVIE_DETAIL_KEYS = (
    "id",
    "title",
    "original_title",
    "overview",
    "release_date",
    "runtime",
    "imdb_id",
    "vote_average",
    "vote_count",
    "tagline",
)


def _movie_summaries(results: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {
            "movie_id": str(m.get("id")),
            "movie_name": m.get("title", ""),
            "release_date": m.get("release_date") or "",
        }
        for m in results
    ]


# ---------------------------------------------------------------------------
# Argument schemas
# ---------------------------------------------------------------------------


class PersonSearchArgs(BaseModel):
    person_name: str = Field(description="The name of the person or cast member")


class MovieSearchArgs(BaseModel):
    movie_title: str = Field(description="The title of the movie, or part of the title")
    release_year: int | None = Field(
        default=None, description="Optional: the year the movie was released"
    )


class MovieDetailsArgs(BaseModel):
    movie_id: str = Field(description="The TMDb id of the movie")


class KeywordSearchArgs(BaseModel):
    keyword: str = Field(description="The name or partial name of the keyword")


class DiscoverArgs(BaseModel):
    release_date_from: str | None = Field(
        default=None, description="Optional: start release date (YYYY-MM-DD)"
    )
    release_date_to: str | None = Field(
        default=None, description="Optional: end release date (YYYY-MM-DD)"
    )
    cast_ids: str | None = Field(
        default=None,
        description="Optional: include movies with all of these cast ids (comma-separated)",
    )
    genre_ids: str | None = Field(
        default=None,
        description="Optional: include movies with all of these genre ids (comma-separated)",
    )
    keyword_ids: str | None = Field(
        default=None,
        description="Optional: include movies with all of these keyword ids (comma-separated)",
    )
    min_vote_average: float | None = Field(
        default=None, description="Optional: minimum vote average (1-10)"
    )
    max_vote_average: float | None = Field(
        default=None, description="Optional: maximum vote average (1-10)"
    )
    min_vote_count: int | None = Field(
        default=None, description="Optional: minimum vote count"
    )
    max_vote_count: int | None = Field(
        default=None, description="Optional: maximum vote count"
    )


class NoArgs(BaseModel):
    pass


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


def build_movie_tools(ctx: ToolContext) -> list[BaseTool]:
    tmdb = ctx.tmdb

    async def get_genres() -> str:
        genres = await tmdb.genres()
        return to_json(
            [{"genre_id": str(g.get("id")), "genre_name": g.get("name")} for g in genres]
        )

    async def search_people(person_name: str) -> str:
        people = await tmdb.search_people(person_name)
        return to_json(
            [{"person_id": str(p.get("id")), "person_name": p.get("name")} for p in people]
        )

    async def search_movies(movie_title: str, release_year: int | None = None) -> str:
        results = await tmdb.search_movies(movie_title, year=release_year or None)
        return to_json(_movie_summaries(results))

    async def get_movie_details(movie_id: str) -> str:
        details = await tmdb.movie_details(int(movie_id))
        payload = {k: details.get(k) for k in MOVIE_DETAIL_KEYS}
        payload["genres"] = [g.get("name") for g in details.get("genres") or []]
        return to_json(payload)

    async def search_keywords(keyword: str) -> str:
        keywords = await tmdb.search_keywords(keyword)
        return to_json(
            [{"keyword_id": str(k.get("id")), "name": k.get("name")} for k in keywords]
        )

    async def discover_movies(
        release_date_from: str | None = None,
        release_date_to: str | None = None,
        cast_ids: str | None = None,
        genre_ids: str | None = None,
        keyword_ids: str | None = None,
        min_vote_average: float | None = None,
        max_vote_average: float | None = None,
        min_vote_count: int | None = None,
        max_vote_count: int | None = None,
    ) -> str:
        results = await tmdb.discover(
            release_date_from=release_date_from,
            release_date_to=release_date_to,
            cast_ids=split_ids(cast_ids),
            genre_ids=split_ids(genre_ids),
            keyword_ids=split_ids(keyword_ids),
            min_vote_average=min_vote_average,
            max_vote_average=max_vote_average,
            min_vote_count=min_vote_count,
            max_vote_count=max_vote_count,
        )
        return to_json(_movie_summaries(results))

    return [
        StructuredTool.from_function(
            coroutine=get_genres,
            name="get_genres",
            description=(
                "Get the list of official movie genres as JSON objects with "
                "genre_id and genre_name."
            ),
            args_schema=NoArgs,
        ),
        StructuredTool.from_function(
            coroutine=search_people,
            name="search_people",
            description=(
                "Search for people / cast by their name. Returns JSON objects "
                "with person_id and person_name."
            ),
            args_schema=PersonSearchArgs,
        ),
        StructuredTool.from_function(
            coroutine=search_movies,
            name="search_movies",
            description=(
                "Search for movies by title (or part of a title) and optional "
                "release year. Returns movie_id, movie_name and release_date."
            ),
            args_schema=MovieSearchArgs,
        ),
        StructuredTool.from_function(
            coroutine=get_movie_details,
            name="get_movie_details",
            description=(
                "Get details of one movie by its id: title, overview, release "
                "date, genres, runtime and IMDb id."
            ),
            args_schema=MovieDetailsArgs,
        ),
        StructuredTool.from_function(
            coroutine=search_keywords,
            name="search_keywords",
            description="Search movie keywords. Returns keyword_id and name.",
            args_schema=KeywordSearchArgs,
        ),
        StructuredTool.from_function(
            coroutine=discover_movies,
            name="discover_movies",
            description=(
                "Discover movies by release-date range, cast, genre and keyword "
                "ids and vote bounds. Returns movie_id, movie_name and release_date."
            ),
            args_schema=DiscoverArgs,
        ),
    ]
