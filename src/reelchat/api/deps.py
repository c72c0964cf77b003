"""Centralized FastAPI dependency type aliases.

Each ``*Dep`` alias corresponds to one ``get_*`` factory and can be
overridden in tests via ``app.dependency_overrides[get_xxx] = ...``.
"""

from typing import Annotated

from fastapi import Depends

from reelchat.core.service.deps import get_turn_orchestrator
from reelchat.core.service.orchestrator import TurnOrchestrator

TurnOrchestratorDep = Annotated[TurnOrchestrator, Depends(get_turn_orchestrator)]
