"""In-memory fakes for the orchestrator and API tests."""

from __future__ import annotations

from reelchat.core.errors import NotFound, SessionConflict
from reelchat.core.knowledge.facts import FactOutcome
from reelchat.core.movies.models import MovieViewModel
from reelchat.core.service.orchestrator import TurnOrchestrator
from reelchat.core.session.models import ChatSession

SYSTEM_PROMPT = "You are a friendly movie expert."


class InMemorySessionRepository:
    """Dict-backed stand-in for ``SessionRepository``."""

    def __init__(self) -> None:
        self.sessions: dict[str, ChatSession] = {}

    async def create(self, chat: ChatSession) -> ChatSession:
        self.sessions[chat.id] = chat.model_copy(deep=True)
        return chat

    async def get(self, session_id: str) -> ChatSession:
        if session_id not in self.sessions:
            raise NotFound(f"Chat session {session_id} not found")
        return self.sessions[session_id].model_copy(deep=True)

    async def replace(self, session_id, new_history, new_fact, expected_version=None):
        current = await self.get(session_id)
        if expected_version is not None and current.version != expected_version:
            raise SessionConflict(session_id, expected_version)
        updated = current.model_copy(
            update={
                "history": list(new_history),
                "funny_fact": new_fact,
                "version": current.version + 1,
            }
        )
        self.sessions[session_id] = updated
        return updated


class ScriptedChat:
    """Returns canned model answers in order and records what it was sent."""

    def __init__(self, *answers: str | Exception) -> None:
        self.answers = list(answers)
        self.seen: list[list] = []

    async def run(self, messages: list) -> str:
        self.seen.append(list(messages))
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


class StaticFacts:
    def __init__(self, outcome: FactOutcome | None = None) -> None:
        self.outcome = outcome or FactOutcome()
        self.queries: list[str] = []

    async def generate(self, query: str) -> FactOutcome:
        self.queries.append(query)
        return self.outcome


class CatalogMovies:
    """Resolves ids from a fixed catalog, dropping unknown ones."""

    def __init__(self, catalog: dict[str, str]) -> None:
        self.catalog = catalog

    async def resolve_many(self, movie_ids: list[str]) -> list[MovieViewModel]:
        return [
            MovieViewModel(id=mid, title=self.catalog[mid])
            for mid in movie_ids
            if mid in self.catalog
        ]


def make_orchestrator(repository, chat, facts=None, movies=None) -> TurnOrchestrator:
    return TurnOrchestrator(
        repository=repository,
        chat=chat,
        facts=facts or StaticFacts(),
        movies=movies or CatalogMovies({}),
        system_prompt=SYSTEM_PROMPT,
    )
