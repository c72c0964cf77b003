"""Movie view model returned to clients and stored in the cache."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class MovieViewModel(BaseModel):
    """Enriched movie record; ``id`` is the cache key.

    Serialised with camelCase keys (``posterPath``, ``voteAverage`` ...).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str = ""
    original_title: str = ""
    original_language: str = ""
    overview: str = ""
    release_date: str | None = None
    genre_ids: list[int] = Field(default_factory=list)
    poster_path: str | None = None
    backdrop_path: str | None = None
    adult: bool = False
    popularity: float = 0.0
    vote_count: int = 0
    vote_average: float = 0.0
    favorite: bool = False
    imdb_id: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("release_date", mode="before")
    @classmethod
    def _blank_date_is_none(cls, value: Any) -> str | None:
        return value or None

    @classmethod
    def from_tmdb(cls, details: dict[str, Any]) -> "MovieViewModel":
        """Build a view model from a TMDb ``/movie/{id}`` payload."""
        genre_ids = details.get("genre_ids")
        if genre_ids is None:
            genre_ids = [g["id"] for g in details.get("genres") or [] if "id" in g]
        return cls(
            id=details["id"],
            title=details.get("title") or "",
            original_title=details.get("original_title") or "",
            original_language=details.get("original_language") or "",
            overview=details.get("overview") or "",
            release_date=details.get("release_date"),
            genre_ids=genre_ids,
            poster_path=details.get("poster_path"),
            backdrop_path=details.get("backdrop_path"),
            adult=bool(details.get("adult", False)),
            popularity=details.get("popularity") or 0.0,
            vote_count=details.get("vote_count") or 0,
            vote_average=details.get("vote_average") or 0.0,
            favorite=False,
            imdb_id=details.get("imdb_id") or "",
        )
