"""Tests for the OMDb-backed ratings agent."""

from __future__ import annotations

import httpx
import pytest

from reelchat.core.knowledge.ratings import (
    ERR_NO_VALID_MOVIES,
    ERR_NO_VALID_RATINGS,
    RatingsAgent,
)


def _omdb(imdb_id: str, title: str, year: str, rating: str) -> dict:
    return {
        "Response": "True",
        "imdbID": imdb_id,
        "Title": title,
        "Year": year,
        "imdbRating": rating,
        "BoxOffice": "$100,000,000",
        "Ratings": [
            {"Source": "Internet Movie Database", "Value": f"{rating}/10"},
            {"Source": "Rotten Tomatoes", "Value": "87%"},
        ],
    }


def _agent(catalog: dict[str, dict]) -> RatingsAgent:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["apikey"] == "key"
        body = catalog.get(request.url.params["i"])
        if body is None:
            return httpx.Response(200, json={"Response": "False", "Error": "Incorrect IMDb ID."})
        return httpx.Response(200, json=body)

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RatingsAgent(http, "https://omdb.test/", "key")


class TestGetRatings:
    @pytest.mark.asyncio
    async def test_found(self):
        agent = _agent({"tt1": _omdb("tt1", "Heat", "1995", "8.3")})
        result = await agent.get_ratings("tt1")
        assert result.success
        assert result.title == "Heat"
        assert result.imdb_rating == "8.3"
        assert result.rotten_tomatoes_rating == "87%"
        assert result.metacritic_rating == "N/A"
        assert result.box_office == "$100,000,000"

    @pytest.mark.asyncio
    async def test_not_found(self):
        result = await _agent({}).get_ratings("tt404")
        assert not result.success
        assert result.error_message == "Movie not found for IMDb ID: tt404"

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("boom", request=request)

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        result = await RatingsAgent(http, "https://omdb.test/", "key").get_ratings("tt1")
        assert not result.success
        assert result.error_message.startswith("Error:")


class TestCompareRatings:
    @pytest.mark.asyncio
    async def test_highest_wins(self):
        agent = _agent(
            {
                "tt1": _omdb("tt1", "A", "2001", "7.4"),
                "tt2": _omdb("tt2", "B", "2002", "8.1"),
                "tt3": _omdb("tt3", "C", "2003", "N/A"),
            }
        )
        comparison = await agent.compare_ratings(["tt1", "tt2", "tt3"])
        assert comparison.success
        assert comparison.highest_rated_title == "B (2002)"
        assert comparison.highest_rating == "8.1"
        assert len(comparison.all_movies) == 3

    @pytest.mark.asyncio
    async def test_tie_goes_to_first(self):
        agent = _agent(
            {
                "tt1": _omdb("tt1", "First", "2001", "8.0"),
                "tt2": _omdb("tt2", "Second", "2002", "8.0"),
            }
        )
        comparison = await agent.compare_ratings(["tt1", "tt2"])
        assert comparison.highest_rated_title == "First (2001)"

    @pytest.mark.asyncio
    async def test_no_numeric_ratings(self):
        agent = _agent(
            {
                "tt1": _omdb("tt1", "A", "2001", "N/A"),
                "tt2": _omdb("tt2", "B", "2002", "N/A"),
            }
        )
        comparison = await agent.compare_ratings(["tt1", "tt2"])
        assert not comparison.success
        assert comparison.error_message == ERR_NO_VALID_RATINGS
        assert len(comparison.all_movies) == 2

    @pytest.mark.asyncio
    async def test_nothing_found(self):
        comparison = await _agent({}).compare_ratings(["tt8", "tt9"])
        assert not comparison.success
        assert comparison.error_message == ERR_NO_VALID_MOVIES


class TestFilterByRating:
    @pytest.mark.asyncio
    async def test_keeps_input_order(self):
        agent = _agent(
            {
                "tt1": _omdb("tt1", "A", "2001", "7.9"),
                "tt2": _omdb("tt2", "B", "2002", "6.0"),
                "tt3": _omdb("tt3", "C", "2003", "8.5"),
            }
        )
        results = await agent.filter_by_rating(["tt3", "tt2", "tt1", "tt404"], 7.5)
        assert [r.title for r in results] == ["C", "A"]
