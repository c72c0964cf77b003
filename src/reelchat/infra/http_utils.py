"""Shared outbound HTTP client.

One ``httpx.AsyncClient`` is opened per process and reused by every
provider client (TMDb, OMDb, Wikipedia, Wikidata) so connections are
pooled.  The configured timeout applies to every request.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

import httpx
from fastapi import Depends, FastAPI

from reelchat.configs.config import AppConfig, get_app_config
from reelchat.infra.lifespan import get_app

_USER_AGENT_HEADER = "User-Agent"


def create_http_client(
    timeout_seconds: float, user_agent: str | None = None
) -> httpx.AsyncClient:
    headers = {_USER_AGENT_HEADER: user_agent} if user_agent else None
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout_seconds),
        headers=headers,
        follow_redirects=True,
    )


async def build_http_client(
    app: Annotated[FastAPI, Depends(get_app)],
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Open the shared client, attach it to ``app.state``, close on shutdown."""
    tp = config.third_party
    client = create_http_client(tp.http_timeout.total_seconds(), tp.user_agent)
    app.state.http_client = client
    yield client
    await client.aclose()
