"""Knowledge enrichment agents (ratings, encyclopedia) and fact generation."""

from .encyclopedia import EncyclopedicAgent  # noqa: F401
from .facts import FactGenerator, FactOutcome  # noqa: F401
from .models import (  # noqa: F401
    KnowledgeSnapshot,
    RatingComparison,
    RatingResult,
)
from .ratings import RatingsAgent  # noqa: F401
