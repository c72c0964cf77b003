"""Entity detection and supplementary ("funny") fact generation.

One call per user turn: detect the single most relevant movie, actor or
director in the raw input, look it up in the encyclopedia and ask the
model for a short surprising fact, grounded in the summary when the
lookup was confident enough.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage

from reelchat.configs.system import PromptConfig
from reelchat.core.llm.messages import message_text
from reelchat.core.service.metrics import FACTS_TOTAL
from reelchat.infra.telemetry import (
    ATTR_ENTITY_NAME,
    ATTR_ENTITY_TYPE,
    ATTR_FACT_GROUNDED,
    SPAN_FACT_DETECT_ENTITY,
    SPAN_FACT_GENERATE,
    tracer,
)

from .encyclopedia import EncyclopedicAgent
from .models import EntityType, normalise_entity_type

logger = logging.getLogger(__name__)

NO_ENTITY = "NONE"
TYPE_SEPARATOR = "|"
_QUOTES = "'\"`"


@dataclass(frozen=True)
class DetectedEntity:
    name: str
    entity_type: EntityType


@dataclass(frozen=True)
class FactOutcome:
    """``fact`` is ``None`` when there is nothing to say; ``error`` is set
    only when a model call failed outright."""

    fact: str | None = None
    error: str | None = None


def parse_entity(raw: str) -> DetectedEntity | None:
    """Parse ``Name`` or ``Name | type``; ``NONE`` or blank means no entity."""
    text = raw.strip().splitlines()[0].strip() if raw.strip() else ""
    name, _, kind = text.partition(TYPE_SEPARATOR)
    name = name.strip().strip(_QUOTES).strip()
    if not name or name.upper() == NO_ENTITY:
        return None
    return DetectedEntity(
        name=name, entity_type=normalise_entity_type(kind.strip().strip(_QUOTES))
    )


def _clean_fact(raw: str) -> str | None:
    fact = raw.strip().strip(_QUOTES).strip()
    return fact or None


class FactGenerator:
    """Produces at most one short fact about the entity a query mentions."""

    def __init__(
        self,
        llm: BaseChatModel,
        encyclopedia: EncyclopedicAgent,
        prompts: PromptConfig,
        confidence_threshold: float = 0.5,
    ) -> None:
        self._llm = llm
        self._encyclopedia = encyclopedia
        self._prompts = prompts
        self._threshold = confidence_threshold

    async def _ask(self, prompt: str) -> str:
        reply = await self._llm.ainvoke([HumanMessage(content=prompt)])
        return message_text(reply)

    async def detect_entity(self, query: str) -> DetectedEntity | None:
        with tracer.start_as_current_span(SPAN_FACT_DETECT_ENTITY) as span:
            raw = await self._ask(self._prompts.entity_detection.format(query=query))
            entity = parse_entity(raw)
            if entity is not None:
                span.set_attribute(ATTR_ENTITY_NAME, entity.name)
                span.set_attribute(ATTR_ENTITY_TYPE, entity.entity_type)
            return entity

    async def generate(self, query: str) -> FactOutcome:
        """Never raises; a failed model call is reported in ``error``."""
        with tracer.start_as_current_span(SPAN_FACT_GENERATE) as span:
            try:
                entity = await self.detect_entity(query)
                if entity is None:
                    FACTS_TOTAL.labels(result="none").inc()
                    return FactOutcome()

                snapshot = await self._encyclopedia.get_enhanced_info(
                    entity.name, entity.entity_type
                )
                grounded = snapshot.confidence > self._threshold and bool(
                    snapshot.summary
                )
                span.set_attribute(ATTR_FACT_GROUNDED, grounded)
                if grounded:
                    prompt = self._prompts.grounded_fact.format(
                        entity=entity.name, summary=snapshot.summary
                    )
                else:
                    prompt = self._prompts.basic_fact.format(entity=entity.name)
                fact = _clean_fact(await self._ask(prompt))
            except Exception as exc:  # noqa: BLE001 - model/provider errors vary by client
                logger.warning("Fact generation failed", exc_info=True)
                FACTS_TOTAL.labels(result="error").inc()
                return FactOutcome(error=str(exc) or type(exc).__name__)

            FACTS_TOTAL.labels(result="grounded" if grounded else "basic").inc()
            return FactOutcome(fact=fact)
