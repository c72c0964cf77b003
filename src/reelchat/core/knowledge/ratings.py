"""Ratings agent backed by the OMDb API."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from reelchat.core.service.metrics import AGENT_REQUESTS_TOTAL
from reelchat.infra.telemetry import (
    ATTR_IMDB_ID,
    ATTR_RATINGS_SUCCESS,
    SPAN_RATINGS_COMPARE,
    SPAN_RATINGS_LOOKUP,
    tracer,
)

from .models import NOT_AVAILABLE, RatingComparison, RatingResult

logger = logging.getLogger(__name__)

AGENT_NAME = "ratings"

SOURCE_ROTTEN_TOMATOES = "Rotten Tomatoes"
SOURCE_METACRITIC = "Metacritic"

ERR_NOT_FOUND = "Movie not found for IMDb ID: {imdb_id}"
ERR_NO_VALID_MOVIES = "No valid movies found for comparison"
ERR_NO_VALID_RATINGS = "No movies with valid IMDb ratings found"


def _rating_by_source(ratings: list[dict[str, Any]] | None, source: str) -> str:
    for rating in ratings or []:
        if source.lower() in str(rating.get("Source", "")).lower():
            return rating.get("Value") or NOT_AVAILABLE
    return NOT_AVAILABLE


class RatingsAgent:
    """Look up, compare and filter titles by their OMDb ratings."""

    def __init__(self, http: httpx.AsyncClient, base_url: str, api_key: str) -> None:
        self._http = http
        self._base_url = base_url
        self._api_key = api_key

    async def get_ratings(self, imdb_id: str) -> RatingResult:
        """Ratings for one IMDb id; failures come back as ``success=False``."""
        with tracer.start_as_current_span(SPAN_RATINGS_LOOKUP) as span:
            span.set_attribute(ATTR_IMDB_ID, imdb_id)
            result = await self._fetch(imdb_id)
            span.set_attribute(ATTR_RATINGS_SUCCESS, result.success)
            AGENT_REQUESTS_TOTAL.labels(
                agent=AGENT_NAME, status="ok" if result.success else "error"
            ).inc()
            return result

    async def _fetch(self, imdb_id: str) -> RatingResult:
        try:
            response = await self._http.get(
                self._base_url, params={"apikey": self._api_key, "i": imdb_id}
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("OMDb lookup failed for %s: %s", imdb_id, exc)
            return RatingResult(success=False, error_message=f"Error: {exc}")

        if not isinstance(data, dict) or data.get("Response") == "False":
            return RatingResult(
                success=False, error_message=ERR_NOT_FOUND.format(imdb_id=imdb_id)
            )

        ratings = data.get("Ratings")
        return RatingResult(
            title=data.get("Title") or "",
            year=data.get("Year") or "",
            imdb_rating=data.get("imdbRating") or NOT_AVAILABLE,
            rotten_tomatoes_rating=_rating_by_source(ratings, SOURCE_ROTTEN_TOMATOES),
            metacritic_rating=_rating_by_source(ratings, SOURCE_METACRITIC),
            box_office=data.get("BoxOffice") or NOT_AVAILABLE,
            success=True,
        )

    async def _lookup_all(self, imdb_ids: list[str]) -> list[RatingResult]:
        return list(await asyncio.gather(*(self.get_ratings(i) for i in imdb_ids)))

    async def compare_ratings(self, imdb_ids: list[str]) -> RatingComparison:
        """Pick the highest IMDb rating; ties go to the first id given."""
        with tracer.start_as_current_span(SPAN_RATINGS_COMPARE):
            found = [r for r in await self._lookup_all(imdb_ids) if r.success]
            if not found:
                return RatingComparison(success=False, error_message=ERR_NO_VALID_MOVIES)

            best: RatingResult | None = None
            best_score = 0.0
            for result in found:
                score = result.numeric_imdb_rating()
                if score is not None and (best is None or score > best_score):
                    best, best_score = result, score

            if best is None:
                return RatingComparison(
                    all_movies=found,
                    success=False,
                    error_message=ERR_NO_VALID_RATINGS,
                )
            return RatingComparison(
                highest_rated_title=f"{best.title} ({best.year})",
                highest_rating=best.imdb_rating,
                all_movies=found,
                success=True,
            )

    async def filter_by_rating(
        self, imdb_ids: list[str], minimum: float
    ) -> list[RatingResult]:
        """Titles whose IMDb rating is at least ``minimum``, in input order."""
        qualifying = []
        for result in await self._lookup_all(imdb_ids):
            score = result.numeric_imdb_rating() if result.success else None
            if score is not None and score >= minimum:
                qualifying.append(result)
        return qualifying
