"""Typed outcomes of the knowledge enrichment agents.

Agents never raise to their callers; failures are reported through the
``success`` flag and ``error_message``.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

EntityType = Literal["movie", "actor", "director"]
ENTITY_TYPES: tuple[EntityType, ...] = ("movie", "actor", "director")
DEFAULT_ENTITY_TYPE: EntityType = "movie"

NOT_AVAILABLE = "N/A"


def normalise_entity_type(value: str | None) -> EntityType:
    """Map free text to a known entity type; unknown values become ``movie``."""
    candidate = (value or "").strip().lower()
    for entity_type in ENTITY_TYPES:
        if candidate == entity_type:
            return entity_type
    if candidate in ("actress", "cast", "person"):
        return "actor"
    return DEFAULT_ENTITY_TYPE


class RatingResult(BaseModel):
    """Ratings of one title from OMDb."""

    title: str = ""
    year: str = ""
    imdb_rating: str = ""
    rotten_tomatoes_rating: str = ""
    metacritic_rating: str = ""
    box_office: str = ""
    success: bool
    error_message: str = ""

    def numeric_imdb_rating(self) -> float | None:
        """The IMDb rating as a float, or ``None`` when it does not parse."""
        try:
            return float(self.imdb_rating)
        except ValueError:
            return None


class RatingComparison(BaseModel):
    """Winner of a ratings comparison across several titles."""

    highest_rated_title: str = ""
    highest_rating: str = ""
    all_movies: list[RatingResult] = Field(default_factory=list)
    success: bool
    error_message: str = ""


class KnowledgeSnapshot(BaseModel):
    """Encyclopedic knowledge about a movie, actor or director."""

    entity_name: str
    entity_type: EntityType = DEFAULT_ENTITY_TYPE
    summary: str | None = None
    thumbnail_url: str | None = None
    structured_facts: dict[str, str | int] = Field(default_factory=dict)
    related_entities: list[str] = Field(default_factory=list)
    sections: dict[str, str] = Field(default_factory=dict)
    confidence: float = 0.0

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        return min(max(value, 0.0), 1.0)
