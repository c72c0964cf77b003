"""Prometheus metrics for reelchat.

Business metrics that complement the HTTP metrics provided by
``prometheus-fastapi-instrumentator``.  All metrics use the
``reelchat_`` prefix.
"""

import logging

from fastapi import FastAPI
from prometheus_client import Counter, Histogram
from prometheus_fastapi_instrumentator import Instrumentator

from reelchat.configs.system import TracingConfig

logger = logging.getLogger(__name__)

METRICS_ENDPOINT = "/metrics"

# ---------------------------------------------------------------------------
# Turn metrics
# ---------------------------------------------------------------------------

TURNS_TOTAL = Counter(
    "reelchat_turns_total",
    "Total chat turns by outcome",
    ["status"],  # "ok" | "error"
)

TURN_DURATION_SECONDS = Histogram(
    "reelchat_turn_duration_seconds",
    "End-to-end duration of one ask turn",
    buckets=(0.5, 1, 2, 5, 10, 20, 30, 60, 120),
)

SESSIONS_STARTED_TOTAL = Counter(
    "reelchat_sessions_started_total",
    "Total chat sessions started",
)

REPLY_PARSE_TOTAL = Counter(
    "reelchat_reply_parse_total",
    "Assistant reply parse outcomes while building a transcript",
    ["result"],  # "ok" | "fallback"
)

# ---------------------------------------------------------------------------
# Tool call metrics
# ---------------------------------------------------------------------------

TOOL_CALLS_TOTAL = Counter(
    "reelchat_tool_calls_total",
    "Total tool invocations by tool name and outcome",
    ["tool_name", "status"],  # status: "ok" | "error" | "unknown"
)

# ---------------------------------------------------------------------------
# Movie cache metrics
# ---------------------------------------------------------------------------

MOVIE_CACHE_LOOKUPS_TOTAL = Counter(
    "reelchat_movie_cache_lookups_total",
    "Movie metadata cache lookups by outcome",
    ["result"],  # "hit" | "miss" | "error" | "bypass"
)

MOVIE_RESOLVE_FAILURES_TOTAL = Counter(
    "reelchat_movie_resolve_failures_total",
    "Movie ids that could not be resolved",
    ["reason"],  # "invalid_id" | "upstream"
)

# ---------------------------------------------------------------------------
# Knowledge agent metrics
# ---------------------------------------------------------------------------

AGENT_REQUESTS_TOTAL = Counter(
    "reelchat_agent_requests_total",
    "Knowledge agent lookups by agent and outcome",
    ["agent", "status"],  # agent: "ratings" | "encyclopedia"
)

FACTS_TOTAL = Counter(
    "reelchat_facts_total",
    "Supplementary fact outcomes",
    ["result"],  # "grounded" | "basic" | "none" | "error"
)


# ---------------------------------------------------------------------------
# HTTP instrumentation
# ---------------------------------------------------------------------------


def setup_metrics(app: FastAPI, tracing: TracingConfig) -> None:
    """Attach HTTP instrumentation middleware and the ``/metrics`` endpoint.

    Must run before the app starts serving: it adds middleware.
    """
    Instrumentator(
        should_instrument_requests_inprogress=True,
        excluded_handlers=tracing.excluded_urls,
    ).instrument(app).expose(app, endpoint=METRICS_ENDPOINT)

    logger.info("Prometheus metrics initialised")
