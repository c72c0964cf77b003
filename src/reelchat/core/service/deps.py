"""FastAPI dependency factories for the chat core.

``build_agents`` and ``build_movie_cache`` are lifespan dependencies
that put long-lived provider clients on ``app.state``.  The ``get_*``
functions are per-request factories with an explicit ``Depends`` chain;
tests override them through ``app.dependency_overrides``.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

import httpx
from fastapi import Depends, FastAPI, Request
from langchain_core.language_models import BaseChatModel
from redis.asyncio import Redis

from reelchat.configs.config import AppConfig, get_app_config
from reelchat.core.knowledge import EncyclopedicAgent, FactGenerator, RatingsAgent
from reelchat.core.llm import ToolCallingChat, get_llm
from reelchat.core.movies.cache import MovieMetadataCache
from reelchat.core.movies.tmdb import TMDbClient
from reelchat.core.tools.base import ToolContext
from reelchat.core.tools.registry import ToolRegistry
from reelchat.infra.db import SessionRepository, get_session_repository
from reelchat.infra.http_utils import build_http_client
from reelchat.infra.lifespan import get_app
from reelchat.infra.redis import build_redis

from .orchestrator import TurnOrchestrator

# ---------------------------------------------------------------------------
# Lifespan dependencies
# ---------------------------------------------------------------------------


async def build_agents(
    app: Annotated[FastAPI, Depends(get_app)],
    config: Annotated[AppConfig, Depends(get_app_config)],
    http: Annotated[httpx.AsyncClient, Depends(build_http_client)],
) -> AsyncGenerator[None, None]:
    """Create the TMDb client and knowledge agents on the shared HTTP client."""
    tp = config.third_party
    app.state.tmdb = TMDbClient(http, tp.tmdb_base_url, tp.tmdb_api_key)
    app.state.ratings_agent = RatingsAgent(http, tp.omdb_base_url, tp.omdb_api_key)
    app.state.encyclopedic_agent = EncyclopedicAgent(
        http,
        rest_url=tp.wikipedia_rest_url,
        action_url=tp.wikipedia_action_url,
        sparql_url=tp.wikidata_sparql_url,
    )
    yield


async def build_movie_cache(
    app: Annotated[FastAPI, Depends(get_app)],
    config: Annotated[AppConfig, Depends(get_app_config)],
    redis: Annotated[Redis | None, Depends(build_redis)],
    _agents: Annotated[None, Depends(build_agents)],
) -> AsyncGenerator[None, None]:
    """Create the process-wide movie metadata cache."""
    app.state.movie_cache = MovieMetadataCache(
        app.state.tmdb,
        redis,
        key_prefix=config.cache.key_prefix,
        ttl=config.cache.movie_ttl,
    )
    yield


# ---------------------------------------------------------------------------
# Per-request dependencies, read from app.state
# ---------------------------------------------------------------------------


def get_tmdb_client(request: Request) -> TMDbClient:
    return request.app.state.tmdb


def get_ratings_agent(request: Request) -> RatingsAgent:
    return request.app.state.ratings_agent


def get_encyclopedic_agent(request: Request) -> EncyclopedicAgent:
    return request.app.state.encyclopedic_agent


def get_movie_cache(request: Request) -> MovieMetadataCache:
    return request.app.state.movie_cache


def get_tool_registry(
    config: Annotated[AppConfig, Depends(get_app_config)],
    tmdb: Annotated[TMDbClient, Depends(get_tmdb_client)],
    ratings: Annotated[RatingsAgent, Depends(get_ratings_agent)],
    encyclopedia: Annotated[EncyclopedicAgent, Depends(get_encyclopedic_agent)],
) -> ToolRegistry:
    context = ToolContext(tmdb=tmdb, ratings=ratings, encyclopedia=encyclopedia)
    return ToolRegistry(config.chat.toolsets, context)


def get_fact_generator(
    config: Annotated[AppConfig, Depends(get_app_config)],
    llm: Annotated[BaseChatModel, Depends(get_llm)],
    encyclopedia: Annotated[EncyclopedicAgent, Depends(get_encyclopedic_agent)],
) -> FactGenerator:
    return FactGenerator(
        llm,
        encyclopedia,
        config.prompt,
        confidence_threshold=config.chat.fact_confidence_threshold,
    )


def get_tool_calling_chat(
    config: Annotated[AppConfig, Depends(get_app_config)],
    llm: Annotated[BaseChatModel, Depends(get_llm)],
    registry: Annotated[ToolRegistry, Depends(get_tool_registry)],
) -> ToolCallingChat:
    return ToolCallingChat(
        llm,
        registry.get_tools(),
        max_rounds=config.chat.max_tool_rounds,
        json_mode=config.chat.json_mode,
    )


def get_turn_orchestrator(
    config: Annotated[AppConfig, Depends(get_app_config)],
    repository: Annotated[SessionRepository, Depends(get_session_repository)],
    chat: Annotated[ToolCallingChat, Depends(get_tool_calling_chat)],
    facts: Annotated[FactGenerator, Depends(get_fact_generator)],
    movies: Annotated[MovieMetadataCache, Depends(get_movie_cache)],
) -> TurnOrchestrator:
    """Create a turn orchestrator per request."""
    return TurnOrchestrator(
        repository=repository,
        chat=chat,
        facts=facts,
        movies=movies,
        system_prompt=config.prompt.system_prompt,
    )
