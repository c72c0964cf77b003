"""Cache-aside resolution of movie ids to ``MovieViewModel``.

Lookups go to Redis first (``<prefix>:<id>``, JSON value); a miss is
filled from TMDb and written back.  Redis trouble never fails a lookup:
a read error is treated as a miss and a write error is ignored.  When no
Redis client is available the cache runs pass-through.

Concurrent misses for the same id within this process share one TMDb
request.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from reelchat.core.errors import ReelchatError, UpstreamError, ValidationFailed
from reelchat.core.service.metrics import (
    MOVIE_CACHE_LOOKUPS_TOTAL,
    MOVIE_RESOLVE_FAILURES_TOTAL,
)
from reelchat.infra.telemetry import (
    ATTR_CACHE_HIT,
    ATTR_MOVIE_ID,
    SPAN_CACHE_RESOLVE,
    tracer,
)

from .models import MovieViewModel
from .tmdb import TMDbClient

logger = logging.getLogger(__name__)

KEY_SEPARATOR = ":"


def parse_movie_id(movie_id: str) -> int:
    """Return the TMDb integer key for ``movie_id``."""
    try:
        return int(str(movie_id).strip())
    except ValueError as exc:
        raise ValidationFailed(f"Movie id {movie_id!r} is not a TMDb id") from exc


class MovieMetadataCache:
    """Resolve movie ids through Redis in front of TMDb."""

    def __init__(
        self,
        tmdb: TMDbClient,
        redis: Redis | None,
        key_prefix: str,
        ttl: timedelta | None = None,
    ) -> None:
        self._tmdb = tmdb
        self._redis = redis
        self._key_prefix = key_prefix
        self._ttl = ttl
        self._inflight: dict[int, asyncio.Task[MovieViewModel]] = {}

    def key_for(self, movie_id: int) -> str:
        return f"{self._key_prefix}{KEY_SEPARATOR}{movie_id}"

    async def resolve(self, movie_id: str) -> MovieViewModel | None:
        """Return the view model for ``movie_id`` or ``None`` if it cannot be resolved."""
        with tracer.start_as_current_span(SPAN_CACHE_RESOLVE) as span:
            span.set_attribute(ATTR_MOVIE_ID, str(movie_id))
            try:
                tmdb_id = parse_movie_id(movie_id)
            except ValidationFailed:
                logger.warning("Skipping invalid movie id %r", movie_id)
                MOVIE_RESOLVE_FAILURES_TOTAL.labels(reason="invalid_id").inc()
                return None

            cached = await self._read(tmdb_id)
            span.set_attribute(ATTR_CACHE_HIT, cached is not None)
            if cached is not None:
                return cached

            try:
                return await self._load_once(tmdb_id)
            except ReelchatError:
                logger.warning("Could not resolve movie %s", tmdb_id, exc_info=True)
                MOVIE_RESOLVE_FAILURES_TOTAL.labels(reason="upstream").inc()
                return None

    async def resolve_many(self, movie_ids: list[str]) -> list[MovieViewModel]:
        """Resolve ids concurrently; results keep input order, failures are dropped."""
        results = await asyncio.gather(*(self.resolve(mid) for mid in movie_ids))
        return [movie for movie in results if movie is not None]

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------

    async def _read(self, tmdb_id: int) -> MovieViewModel | None:
        if self._redis is None:
            MOVIE_CACHE_LOOKUPS_TOTAL.labels(result="bypass").inc()
            return None
        try:
            raw = await self._redis.get(self.key_for(tmdb_id))
        except RedisError:
            logger.warning("Cache read failed for movie %s", tmdb_id, exc_info=True)
            MOVIE_CACHE_LOOKUPS_TOTAL.labels(result="error").inc()
            return None
        if raw is None:
            MOVIE_CACHE_LOOKUPS_TOTAL.labels(result="miss").inc()
            return None
        try:
            movie = MovieViewModel.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable cache entry for movie %s", tmdb_id)
            MOVIE_CACHE_LOOKUPS_TOTAL.labels(result="error").inc()
            return None
        MOVIE_CACHE_LOOKUPS_TOTAL.labels(result="hit").inc()
        return movie

    async def _write(self, movie: MovieViewModel, tmdb_id: int) -> None:
        if self._redis is None:
            return
        try:
            await self._redis.set(
                self.key_for(tmdb_id),
                movie.model_dump_json(by_alias=True),
                ex=self._ttl,
            )
        except RedisError:
            logger.warning("Cache write failed for movie %s", tmdb_id, exc_info=True)

    async def _load_once(self, tmdb_id: int) -> MovieViewModel:
        task = self._inflight.get(tmdb_id)
        if task is None:
            task = asyncio.create_task(self._load(tmdb_id))
            self._inflight[tmdb_id] = task
            task.add_done_callback(lambda _t: self._inflight.pop(tmdb_id, None))
        return await task

    async def _load(self, tmdb_id: int) -> MovieViewModel:
        details = await self._tmdb.movie_details(tmdb_id)
        try:
            movie = MovieViewModel.from_tmdb(details)
        except (KeyError, TypeError, ValidationError) as exc:
            raise UpstreamError(
                f"Unexpected TMDb payload for movie {tmdb_id}", provider="tmdb"
            ) from exc
        await self._write(movie, tmdb_id)
        return movie
