"""Turn orchestration: the per-message control loop.

``start`` creates a session holding only the system instruction.
``ask`` runs one turn:

1. generate the supplementary fact for the raw input,
2. append the user message,
3. run the tool-calling model over the whole history,
4. append the model's final text as an assistant message,
5. rebuild the visible transcript, resolving every referenced movie,
6. persist history and fact, guarded by the version loaded up front.

Anything that fails before step 6, other than the contained fact and
per-movie failures, aborts the turn and leaves the session untouched.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Protocol

from reelchat.core.errors import MalformedReply, ValidationFailed
from reelchat.core.knowledge.facts import FactGenerator
from reelchat.core.movies.cache import MovieMetadataCache
from reelchat.core.session.converters import history_to_messages
from reelchat.core.session.models import (
    AssistantEntry,
    ChatSession,
    ConversationMessage,
    SystemEntry,
    UserEntry,
)
from reelchat.infra.db.repository import SessionRepository
from reelchat.infra.id_utils import generate_session_id
from reelchat.infra.telemetry import (
    ATTR_HISTORY_LENGTH,
    ATTR_MOVIE_COUNT,
    ATTR_REPLY_PARSED,
    ATTR_SESSION_ID,
    SPAN_TURN_ASK,
    SPAN_TURN_START,
    SPAN_TURN_TRANSCRIPT,
    tracer,
)

from .metrics import (
    REPLY_PARSE_TOTAL,
    SESSIONS_STARTED_TOTAL,
    TURN_DURATION_SECONDS,
    TURNS_TOTAL,
)
from .models import AssistantTurnEntry, TurnResult, UserTurnEntry
from .reply import NO_MOVIES_FOUND, parse_structured_reply

logger = logging.getLogger(__name__)


class ChatRunner(Protocol):
    async def run(self, messages: list) -> str: ...


class TurnOrchestrator:
    """Runs chat turns against a persisted session."""

    def __init__(
        self,
        repository: SessionRepository,
        chat: ChatRunner,
        facts: FactGenerator,
        movies: MovieMetadataCache,
        system_prompt: str,
    ) -> None:
        self._repository = repository
        self._chat = chat
        self._facts = facts
        self._movies = movies
        self._system_prompt = system_prompt

    async def start(self) -> str:
        """Create a session seeded with the system instruction; return its id."""
        with tracer.start_as_current_span(SPAN_TURN_START) as span:
            session = ChatSession(
                id=generate_session_id(),
                history=[SystemEntry(content=self._system_prompt)],
            )
            created = await self._repository.create(session)
            span.set_attribute(ATTR_SESSION_ID, created.id)
            SESSIONS_STARTED_TOTAL.inc()
            logger.info("Started chat session %s", created.id)
            return created.id

    async def ask(self, session_id: str, user_input: str) -> TurnResult:
        """Run one turn and return the visible transcript and current fact."""
        if not user_input or not user_input.strip():
            raise ValidationFailed("Input must not be empty")

        started = time.monotonic()
        status = "ok"
        try:
            with tracer.start_as_current_span(SPAN_TURN_ASK) as span:
                span.set_attribute(ATTR_SESSION_ID, session_id)
                return await self._ask(session_id, user_input)
        except Exception:
            status = "error"
            raise
        finally:
            TURNS_TOTAL.labels(status=status).inc()
            TURN_DURATION_SECONDS.observe(time.monotonic() - started)

    async def _ask(self, session_id: str, user_input: str) -> TurnResult:
        session = await self._repository.get(session_id)

        outcome = await self._facts.generate(user_input)
        if outcome.error:
            logger.warning(
                "No fact for session %s: %s", session_id, outcome.error
            )

        history: list[ConversationMessage] = [
            *session.history,
            UserEntry(content=user_input),
        ]
        answer = await self._chat.run(history_to_messages(history))
        history.append(AssistantEntry(content=answer))

        messages = await self.build_transcript(history)

        await self._repository.replace(
            session_id,
            history,
            outcome.fact,
            expected_version=session.version,
        )
        return TurnResult(messages=messages, funny_fact=outcome.fact)

    # ------------------------------------------------------------------
    # Transcript
    # ------------------------------------------------------------------

    async def _assistant_entry(self, content: str) -> AssistantTurnEntry:
        try:
            reply = parse_structured_reply(content).unwrap()
        except MalformedReply as exc:
            logger.info("Assistant reply not parseable (%s); using fallback", exc)
            REPLY_PARSE_TOTAL.labels(result="fallback").inc()
            return AssistantTurnEntry(text=NO_MOVIES_FOUND)
        REPLY_PARSE_TOTAL.labels(result="ok").inc()
        movies = await self._movies.resolve_many(reply.movie_ids())
        return AssistantTurnEntry(text=reply.message, movie_list=movies)

    async def _user_entry(self, content: str) -> UserTurnEntry:
        return UserTurnEntry(text=content)

    async def build_transcript(
        self, history: list[ConversationMessage]
    ) -> list[UserTurnEntry | AssistantTurnEntry]:
        """Visible entries for ``history`` in order; system and tool entries are hidden."""
        with tracer.start_as_current_span(SPAN_TURN_TRANSCRIPT) as span:
            pending = []
            for entry in history:
                if isinstance(entry, UserEntry) and entry.content.strip():
                    pending.append(self._user_entry(entry.content))
                elif isinstance(entry, AssistantEntry):
                    pending.append(self._assistant_entry(entry.content))
            entries = list(await asyncio.gather(*pending))
            span.set_attribute(ATTR_HISTORY_LENGTH, len(history))
            last = entries[-1] if entries else None
            if isinstance(last, AssistantTurnEntry):
                span.set_attribute(ATTR_REPLY_PARSED, last.text != NO_MOVIES_FOUND)
                span.set_attribute(ATTR_MOVIE_COUNT, len(last.movie_list))
            return entries
