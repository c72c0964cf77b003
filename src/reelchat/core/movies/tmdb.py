"""Thin async client for the TMDb v3 API.

Every method returns decoded JSON.  Transport failures and non-2xx
responses are raised as ``UpstreamError`` so callers only deal with the
core error taxonomy.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from reelchat.core.errors import UpstreamError

logger = logging.getLogger(__name__)

PROVIDER = "tmdb"

PATH_MOVIE = "/movie/{movie_id}"
PATH_GENRES = "/genre/movie/list"
PATH_SEARCH_MOVIE = "/search/movie"
PATH_SEARCH_PERSON = "/search/person"
PATH_SEARCH_KEYWORD = "/search/keyword"
PATH_DISCOVER = "/discover/movie"

PARAM_API_KEY = "api_key"
RESULTS = "results"

# TMDb "AND" separator for multi-value discover filters.
AND_SEPARATOR = ","


class TMDbClient:
    """TMDb v3 endpoints used by the movie tools and the metadata cache."""

    def __init__(self, http: httpx.AsyncClient, base_url: str, api_key: str) -> None:
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        query = {k: v for k, v in (params or {}).items() if v is not None}
        query[PARAM_API_KEY] = self._api_key
        try:
            response = await self._http.get(self._base_url + path, params=query)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise UpstreamError(
                f"TMDb {path} returned {exc.response.status_code}", provider=PROVIDER
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise UpstreamError(f"TMDb {path} failed: {exc}", provider=PROVIDER) from exc

    async def movie_details(self, movie_id: int) -> dict[str, Any]:
        return await self._get(PATH_MOVIE.format(movie_id=movie_id))

    async def genres(self) -> list[dict[str, Any]]:
        data = await self._get(PATH_GENRES)
        return data.get("genres", [])

    async def search_movies(
        self, title: str, year: int | None = None
    ) -> list[dict[str, Any]]:
        data = await self._get(PATH_SEARCH_MOVIE, {"query": title, "year": year})
        return data.get(RESULTS, [])

    async def search_people(self, name: str) -> list[dict[str, Any]]:
        data = await self._get(
            PATH_SEARCH_PERSON, {"query": name, "include_adult": "false"}
        )
        return data.get(RESULTS, [])

    async def search_keywords(self, keyword: str) -> list[dict[str, Any]]:
        data = await self._get(PATH_SEARCH_KEYWORD, {"query": keyword})
        return data.get(RESULTS, [])

    async def discover(
        self,
        *,
        release_date_from: str | None = None,
        release_date_to: str | None = None,
        cast_ids: list[int] | None = None,
        genre_ids: list[int] | None = None,
        keyword_ids: list[int] | None = None,
        min_vote_average: float | None = None,
        max_vote_average: float | None = None,
        min_vote_count: int | None = None,
        max_vote_count: int | None = None,
    ) -> list[dict[str, Any]]:
        """Discover movies matching every given filter."""
        params = {
            "primary_release_date.gte": release_date_from,
            "primary_release_date.lte": release_date_to,
            "with_cast": _join(cast_ids),
            "with_genres": _join(genre_ids),
            "with_keywords": _join(keyword_ids),
            "vote_average.gte": min_vote_average,
            "vote_average.lte": max_vote_average,
            "vote_count.gte": min_vote_count,
            "vote_count.lte": max_vote_count,
        }
        data = await self._get(PATH_DISCOVER, params)
        return data.get(RESULTS, [])


def _join(ids: list[int] | None) -> str | None:
    if not ids:
        return None
    return AND_SEPARATOR.join(str(i) for i in ids)
