"""OpenTelemetry bootstrap: tracing initialisation and span names.

Configures a ``TracerProvider`` with an OTLP HTTP exporter when tracing
is enabled via ``TracingConfig``.  When disabled the module is a no-op
and ``tracer`` hands out non-recording spans.

Auto-instrumentations wired here:

- **FastAPI** (inbound HTTP spans)
- **httpx** (outbound spans: TMDb, OMDb, Wikipedia, Wikidata, the model)
- **SQLAlchemy** (session store spans)

``init_telemetry`` runs while the app is being built, because the
FastAPI instrumentor adds middleware.  ``build_telemetry`` is the
lifespan dependency that instruments the engine created by
``build_db`` and flushes spans on shutdown.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, FastAPI
from opentelemetry import trace

from reelchat.configs.system import TracingConfig
from reelchat.infra.db_engine import build_db
from reelchat.infra.lifespan import get_app

logger = logging.getLogger(__name__)

_otel_enabled = False

tracer = trace.get_tracer("reelchat")

# ---------------------------------------------------------------------------
# Span names
# ---------------------------------------------------------------------------

SPAN_TURN_START = "turn.start"
SPAN_TURN_ASK = "turn.ask"
SPAN_TURN_TRANSCRIPT = "turn.transcript"
SPAN_FACT_GENERATE = "fact.generate"
SPAN_FACT_DETECT_ENTITY = "fact.detect_entity"
SPAN_TOOL_LOOP = "llm.tool_loop"
SPAN_CACHE_RESOLVE = "cache.resolve"
SPAN_RATINGS_LOOKUP = "ratings.lookup"
SPAN_RATINGS_COMPARE = "ratings.compare"
SPAN_ENCYCLOPEDIA_LOOKUP = "encyclopedia.lookup"
SPAN_SESSION_LOAD = "session.load"
SPAN_SESSION_SAVE = "session.save"

# ---------------------------------------------------------------------------
# Span attribute keys
# ---------------------------------------------------------------------------

ATTR_SESSION_ID = "session.id"
ATTR_SESSION_VERSION = "session.version"
ATTR_HISTORY_LENGTH = "session.history_length"

ATTR_MOVIE_ID = "movie.id"
ATTR_CACHE_HIT = "cache.hit"

ATTR_TOOL_ROUNDS = "llm.tool_rounds"
ATTR_TOOL_CALL_COUNT = "llm.tool_call_count"

ATTR_ENTITY_NAME = "entity.name"
ATTR_ENTITY_TYPE = "entity.type"
ATTR_ENTITY_CONFIDENCE = "entity.confidence"
ATTR_FACT_GROUNDED = "fact.grounded"

ATTR_IMDB_ID = "ratings.imdb_id"
ATTR_RATINGS_SUCCESS = "ratings.success"

ATTR_REPLY_PARSED = "turn.reply_parsed"
ATTR_MOVIE_COUNT = "turn.movie_count"


def init_telemetry(
    app: object | None = None,
    settings: TracingConfig | None = None,
) -> None:
    """Initialise the OTEL ``TracerProvider`` and auto-instrumentations.

    No-op when ``settings`` is ``None``, tracing is disabled, or the
    exporter endpoint / credentials are missing.
    """
    global _otel_enabled  # noqa: PLW0603

    if settings is None or not settings.enabled:
        logger.info("OpenTelemetry tracing disabled.")
        return

    if not settings.endpoint or not settings.username or not settings.password:
        logger.warning(
            "Tracing enabled but endpoint/credentials not configured -- "
            "skipping OpenTelemetry setup."
        )
        return

    from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
        OTLPSpanExporter,
    )
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor
    from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

    resource = Resource.create({"service.name": settings.service_name})
    sampler = ParentBased(root=TraceIdRatioBased(settings.sample_rate))
    provider = TracerProvider(resource=resource, sampler=sampler)

    credentials = f"{settings.username}:{settings.password}"
    encoded = base64.b64encode(credentials.encode()).decode()
    exporter = OTLPSpanExporter(
        endpoint=settings.endpoint,
        headers={"Authorization": f"Basic {encoded}"},
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    if app is not None:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

        excluded = ",".join(settings.excluded_urls)
        FastAPIInstrumentor.instrument_app(app, excluded_urls=excluded)

    from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

    HTTPXClientInstrumentor().instrument()

    _otel_enabled = True
    logger.info(
        "OpenTelemetry tracing initialised (service=%s).", settings.service_name
    )


def instrument_sqlalchemy(engine: object) -> None:
    """Instrument a SQLAlchemy engine; no-op when OTEL is not enabled."""
    if not _otel_enabled:
        return

    from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

    sync_engine = getattr(engine, "sync_engine", engine)
    SQLAlchemyInstrumentor().instrument(engine=sync_engine)
    logger.info("SQLAlchemy engine instrumented for OTEL tracing.")


# ---------------------------------------------------------------------------
# Lifespan dependency
# ---------------------------------------------------------------------------


async def build_telemetry(
    app: Annotated[FastAPI, Depends(get_app)],
    _db: Annotated[None, Depends(build_db)],
) -> AsyncGenerator[None, None]:
    """Instrument the session store engine; flush spans on shutdown."""
    instrument_sqlalchemy(app.state.engine)
    yield
    if _otel_enabled:
        provider = trace.get_tracer_provider()
        shutdown = getattr(provider, "shutdown", None)
        if shutdown is not None:
            shutdown()
