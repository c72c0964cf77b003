"""FastAPI application entry point."""

import logging
from typing import Annotated, AsyncGenerator

from fastapi import Depends, FastAPI

from reelchat import __version__
from reelchat.api.chat import router as chat_router
from reelchat.api.exceptions import install_exception_handlers
from reelchat.configs.config import get_app_config
from reelchat.core.service.deps import build_movie_cache
from reelchat.core.service.metrics import setup_metrics
from reelchat.infra.lifespan import inject
from reelchat.infra.logging import setup_logging
from reelchat.infra.telemetry import build_telemetry, init_telemetry

logger = logging.getLogger(__name__)


@inject
async def lifespan(
    app: FastAPI,
    _movie_cache: Annotated[None, Depends(build_movie_cache)],
    _telemetry: Annotated[None, Depends(build_telemetry)],
) -> AsyncGenerator[None, None]:
    """Start shared clients; ``build_movie_cache`` pulls in HTTP, Redis and
    the agents, ``build_telemetry`` pulls in the database engine."""
    logger.info("reelchat started")
    yield
    logger.info("reelchat shutting down")


def get_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    config = get_app_config()
    setup_logging(config.logging)

    app = FastAPI(
        title="reelchat",
        description="Conversational movie discovery backend",
        version=__version__,
        lifespan=lifespan,
    )

    install_exception_handlers(app)
    init_telemetry(app, config.tracing)
    setup_metrics(app, config.tracing)

    app.include_router(chat_router)

    return app


app = get_app()
