"""Chat API endpoints."""

from fastapi import APIRouter, Path

from .deps import TurnOrchestratorDep
from .models import AskRequest, AskResponse, HealthResponse, StartChatResponse

router = APIRouter(tags=["chat"])

CHAT_ID_MAX_LENGTH = 32


@router.get("/chat/start", response_model=StartChatResponse)
async def start_chat(orchestrator: TurnOrchestratorDep) -> StartChatResponse:
    """Create a chat session and return its id."""
    chat_id = await orchestrator.start()
    return StartChatResponse(chat_id=chat_id)


@router.post("/chat/{chat_id}/ask", response_model=AskResponse)
async def ask(
    body: AskRequest,
    orchestrator: TurnOrchestratorDep,
    chat_id: str = Path(max_length=CHAT_ID_MAX_LENGTH),
) -> AskResponse:
    """Run one turn and return the visible transcript plus the current fact.

    ``movieList`` on each assistant entry holds the resolved movies; ids
    that could not be resolved are left out.
    """
    result = await orchestrator.ask(chat_id, body.input)
    return AskResponse(funny_fact=result.funny_fact, messages=result.messages)


@router.get("/health", response_model=HealthResponse, tags=["ops"])
async def health() -> HealthResponse:
    return HealthResponse()
