"""Tests for TMDb access and the Redis-backed movie metadata cache."""

from __future__ import annotations

import asyncio
import json
from datetime import timedelta

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from reelchat.core.errors import UpstreamError, ValidationFailed
from reelchat.core.movies.cache import MovieMetadataCache, parse_movie_id
from reelchat.core.movies.models import MovieViewModel
from reelchat.core.movies.tmdb import TMDbClient

_INCEPTION = {
    "id": 27205,
    "title": "Inception",
    "original_title": "Inception",
    "original_language": "en",
    "overview": "A thief who steals corporate secrets...",
    "release_date": "2010-07-15",
    "genres": [{"id": 28, "name": "Action"}, {"id": 878, "name": "Science Fiction"}],
    "poster_path": "/poster.jpg",
    "backdrop_path": "/backdrop.jpg",
    "adult": False,
    "popularity": 83.9,
    "vote_count": 35000,
    "vote_average": 8.4,
    "imdb_id": "tt1375666",
}


class FakeRedis:
    """In-memory stand-in for ``redis.asyncio.Redis``."""

    def __init__(self, fail: bool = False) -> None:
        self.store: dict[str, str] = {}
        self.expiries: dict[str, timedelta | None] = {}
        self.fail = fail

    async def get(self, key: str):
        if self.fail:
            raise RedisConnectionError("down")
        return self.store.get(key)

    async def set(self, key: str, value: str, ex=None):
        if self.fail:
            raise RedisConnectionError("down")
        self.store[key] = value
        self.expiries[key] = ex
        return True


class _TMDbStub:
    """Counts requests per movie id and serves canned details."""

    def __init__(self, movies: dict[int, dict]) -> None:
        self.movies = movies
        self.calls: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request.url.path)
        movie_id = int(request.url.path.rsplit("/", 1)[-1])
        if movie_id not in self.movies:
            return httpx.Response(404, json={"status_message": "not found"})
        return httpx.Response(200, json=self.movies[movie_id])

    def client(self) -> TMDbClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return TMDbClient(http, "https://tmdb.test/3", "key")


# ---------------------------------------------------------------------------
# MovieViewModel
# ---------------------------------------------------------------------------


class TestMovieViewModel:
    def test_from_tmdb_details(self):
        movie = MovieViewModel.from_tmdb(_INCEPTION)
        assert movie.id == "27205"
        assert movie.genre_ids == [28, 878]
        assert movie.favorite is False
        assert movie.imdb_id == "tt1375666"

    def test_camel_case_wire_format(self):
        data = MovieViewModel.from_tmdb(_INCEPTION).model_dump(by_alias=True)
        assert data["posterPath"] == "/poster.jpg"
        assert data["voteAverage"] == 8.4
        assert data["releaseDate"] == "2010-07-15"

    def test_blank_release_date_is_none(self):
        movie = MovieViewModel.from_tmdb({**_INCEPTION, "release_date": ""})
        assert movie.release_date is None

    def test_round_trips_through_cache_json(self):
        movie = MovieViewModel.from_tmdb(_INCEPTION)
        restored = MovieViewModel.model_validate_json(movie.model_dump_json(by_alias=True))
        assert restored == movie


# ---------------------------------------------------------------------------
# TMDbClient
# ---------------------------------------------------------------------------


class TestTMDbClient:
    @pytest.mark.asyncio
    async def test_sends_api_key_and_drops_empty_params(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"results": [{"id": 1}]})

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = TMDbClient(http, "https://tmdb.test/3/", "secret")
        results = await client.search_movies("Heat", year=None)

        assert results == [{"id": 1}]
        params = seen[0].url.params
        assert seen[0].url.path == "/3/search/movie"
        assert params["api_key"] == "secret"
        assert params["query"] == "Heat"
        assert "year" not in params

    @pytest.mark.asyncio
    async def test_discover_joins_ids(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"results": []})

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = TMDbClient(http, "https://tmdb.test/3", "k")
        await client.discover(cast_ids=[31, 32], genre_ids=[], min_vote_average=7.0)

        params = seen[0].url.params
        assert params["with_cast"] == "31,32"
        assert "with_genres" not in params
        assert params["vote_average.gte"] == "7.0"

    @pytest.mark.asyncio
    async def test_http_error_becomes_upstream_error(self):
        http = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(500))
        )
        client = TMDbClient(http, "https://tmdb.test/3", "k")
        with pytest.raises(UpstreamError) as exc_info:
            await client.movie_details(1)
        assert exc_info.value.provider == "tmdb"


# ---------------------------------------------------------------------------
# MovieMetadataCache
# ---------------------------------------------------------------------------


class TestParseMovieId:
    def test_numeric_strings(self):
        assert parse_movie_id(" 27205 ") == 27205

    def test_rejects_non_numeric(self):
        with pytest.raises(ValidationFailed):
            parse_movie_id("tt1375666")


class TestMovieMetadataCache:
    @pytest.mark.asyncio
    async def test_miss_fetches_and_writes_back(self):
        stub = _TMDbStub({27205: _INCEPTION})
        redis = FakeRedis()
        cache = MovieMetadataCache(
            stub.client(), redis, "reelchat:movie", ttl=timedelta(hours=1)
        )

        movie = await cache.resolve("27205")

        assert movie is not None and movie.title == "Inception"
        assert stub.calls == ["/3/movie/27205"]
        stored = json.loads(redis.store["reelchat:movie:27205"])
        assert stored["id"] == "27205"
        assert stored["voteAverage"] == 8.4
        assert redis.expiries["reelchat:movie:27205"] == timedelta(hours=1)

    @pytest.mark.asyncio
    async def test_second_resolve_is_served_from_cache(self):
        stub = _TMDbStub({27205: _INCEPTION})
        cache = MovieMetadataCache(stub.client(), FakeRedis(), "reelchat:movie")

        first = await cache.resolve("27205")
        second = await cache.resolve("27205")

        assert first.model_dump_json(by_alias=True) == second.model_dump_json(by_alias=True)
        assert stub.calls == ["/3/movie/27205"]

    @pytest.mark.asyncio
    async def test_hit_skips_tmdb(self):
        stub = _TMDbStub({})
        redis = FakeRedis()
        cached = MovieViewModel.from_tmdb(_INCEPTION)
        redis.store["reelchat:movie:27205"] = cached.model_dump_json(by_alias=True)
        cache = MovieMetadataCache(stub.client(), redis, "reelchat:movie")

        movie = await cache.resolve("27205")

        assert movie == cached
        assert stub.calls == []

    @pytest.mark.asyncio
    async def test_corrupt_entry_is_treated_as_miss(self):
        stub = _TMDbStub({27205: _INCEPTION})
        redis = FakeRedis()
        redis.store["reelchat:movie:27205"] = "not json"
        cache = MovieMetadataCache(stub.client(), redis, "reelchat:movie")

        movie = await cache.resolve("27205")

        assert movie is not None
        assert len(stub.calls) == 1
        assert json.loads(redis.store["reelchat:movie:27205"])["title"] == "Inception"

    @pytest.mark.asyncio
    async def test_redis_down_falls_through_to_tmdb(self):
        stub = _TMDbStub({27205: _INCEPTION})
        cache = MovieMetadataCache(stub.client(), FakeRedis(fail=True), "p")

        movie = await cache.resolve("27205")

        assert movie is not None and movie.id == "27205"

    @pytest.mark.asyncio
    async def test_without_redis_is_pass_through(self):
        stub = _TMDbStub({27205: _INCEPTION})
        cache = MovieMetadataCache(stub.client(), None, "p")

        assert (await cache.resolve("27205")) is not None
        assert (await cache.resolve("27205")) is not None
        assert len(stub.calls) == 2

    @pytest.mark.asyncio
    async def test_unknown_and_invalid_ids_resolve_to_none(self):
        stub = _TMDbStub({})
        cache = MovieMetadataCache(stub.client(), FakeRedis(), "p")

        assert await cache.resolve("999") is None
        assert await cache.resolve("abc") is None
        assert stub.calls == ["/3/movie/999"]

    @pytest.mark.asyncio
    async def test_resolve_many_keeps_order_and_drops_failures(self):
        matrix = {**_INCEPTION, "id": 603, "title": "The Matrix"}
        stub = _TMDbStub({27205: _INCEPTION, 603: matrix})
        cache = MovieMetadataCache(stub.client(), FakeRedis(), "p")

        movies = await cache.resolve_many(["603", "oops", "404", "27205"])

        assert [m.id for m in movies] == ["603", "27205"]

    @pytest.mark.asyncio
    async def test_concurrent_misses_share_one_request(self):
        stub = _TMDbStub({27205: _INCEPTION})
        cache = MovieMetadataCache(stub.client(), FakeRedis(), "p")

        results = await asyncio.gather(*(cache.resolve("27205") for _ in range(5)))

        assert all(r is not None and r.id == "27205" for r in results)
        assert stub.calls == ["/3/movie/27205"]
