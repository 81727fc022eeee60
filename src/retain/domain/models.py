"""
Domain models for the scheduling engine.

These are pure data structures with no I/O or external dependencies.
"""

from collections.abc import Hashable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .constants import DEFAULT_EASE_FACTOR, DEFAULT_MAX_CARDS
from .errors import InvalidInputError


def ensure_aware(value: datetime | None) -> datetime | None:
    """Interpret naive datetimes as UTC so comparisons never mix naive and aware values."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


@dataclass
class CardReviewState:
    """
    Review state of a single learnable item.

    Owned by the store; the engine only produces field updates for it.

    Attributes:
        id: Opaque card identifier.
        created_at: When the card entered the system. Never updated.
        category: Classification label, used only as a selection filter.
        difficulty: Difficulty label (Beginner, Intermediate, Advanced).
        ease_factor: Interval growth multiplier, kept within [1.3, 3.0].
        interval: Days until the next review. None until first reviewed.
        study_count: Consecutive qualifying repetitions.
        total_reviews: All review attempts.
        correct_count: Attempts graded quality >= 3.
        last_reviewed: Most recent attempt, None for new cards.
        due_date: When the card should resurface, None for new cards.
    """

    id: Hashable
    created_at: datetime
    category: str | None = None
    difficulty: str | None = None
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval: int | None = None
    study_count: int = 0
    total_reviews: int = 0
    correct_count: int = 0
    last_reviewed: datetime | None = None
    due_date: datetime | None = None

    def __post_init__(self):
        self.created_at = ensure_aware(self.created_at)
        self.last_reviewed = ensure_aware(self.last_reviewed)
        self.due_date = ensure_aware(self.due_date)

    @property
    def is_new(self) -> bool:
        return self.total_reviews == 0


# Fields a store accepts in update(); id and created_at are immutable.
MUTABLE_FIELDS = frozenset(
    {
        "category",
        "difficulty",
        "ease_factor",
        "interval",
        "study_count",
        "total_reviews",
        "correct_count",
        "last_reviewed",
        "due_date",
    }
)


@dataclass(frozen=True)
class StudyOutcome:
    """
    One graded review of a card.

    Attributes:
        card_id: The card that was reviewed.
        quality: Recall quality, 0 (blackout) to 5 (perfect). Clamped and rounded on use.
        timestamp: When the review happened; becomes last_reviewed.
        response_time_ms: Time taken to answer, if measured.
    """

    card_id: Hashable
    quality: float
    timestamp: datetime
    response_time_ms: float | None = None

    def __post_init__(self):
        if not isinstance(self.timestamp, datetime):
            raise InvalidInputError(
                f"timestamp must be a datetime, got {type(self.timestamp).__name__}"
            )
        object.__setattr__(self, "timestamp", ensure_aware(self.timestamp))


@dataclass(frozen=True)
class NextReviewCalculation:
    """Immutable result of a review calculation."""

    next_interval: int  # days
    next_ease_factor: float
    next_repetition: int
    next_due_date: datetime
    confidence: float  # 0-1
    quality: int  # effective quality after clamping and rounding
    passed: bool

    def to_updates(self, state: CardReviewState, reviewed_at: datetime) -> dict[str, Any]:
        """Build the partial field update that applies this result to ``state``."""
        return {
            "last_reviewed": reviewed_at,
            "total_reviews": state.total_reviews + 1,
            "correct_count": state.correct_count + (1 if self.passed else 0),
            "ease_factor": self.next_ease_factor,
            "interval": self.next_interval,
            "due_date": self.next_due_date,
            "study_count": self.next_repetition,
        }


@dataclass
class CandidateSets:
    """Cards partitioned for session composition, each list already ordered."""

    due: list[CardReviewState] = field(default_factory=list)
    new: list[CardReviewState] = field(default_factory=list)
    review: list[CardReviewState] = field(default_factory=list)  # reviewed, not yet due


@dataclass
class QueueOptions:
    """Options for building one study session."""

    max_cards: int = DEFAULT_MAX_CARDS
    include_new: bool = True
    categories: list[str] | None = None
    difficulties: list[str] | None = None


@dataclass
class StudyStats:
    total_due: int
    new_cards: int
    review_cards: int
    average_retention: float
    recommended_session_size: int
    next_review_time: datetime | None


@dataclass
class BatchResult:
    """Outcome of a bulk update: which cards were written and which ids were unknown."""

    processed: list[Hashable] = field(default_factory=list)
    skipped: list[Hashable] = field(default_factory=list)
