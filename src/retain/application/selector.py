"""
Due-set selection.

Partitions a card collection into due, new and not-yet-due sets and orders
each one for session composition.
"""

import logging
import threading
from collections.abc import Collection, Iterable
from datetime import datetime

from retain.domain.constants import DEFAULT_DIFFICULTY_RANK, DIFFICULTY_RANK
from retain.domain.errors import OperationCancelled
from retain.domain.models import CandidateSets, CardReviewState, ensure_aware

from .confidence import ranking_confidence

logger = logging.getLogger(__name__)


def difficulty_rank(card: CardReviewState) -> int:
    """Lower ranks surface first: harder cards come before easier ones."""
    if card.difficulty is None:
        return DEFAULT_DIFFICULTY_RANK
    return DIFFICULTY_RANK.get(card.difficulty, DEFAULT_DIFFICULTY_RANK)


def matches_filters(
    card: CardReviewState,
    categories: Collection[str] | None = None,
    difficulties: Collection[str] | None = None,
) -> bool:
    """Empty or missing filter collections match everything."""
    if categories and card.category not in categories:
        return False
    if difficulties and card.difficulty not in difficulties:
        return False
    return True


def is_due(card: CardReviewState, now: datetime) -> bool:
    """A reviewed card with no due date is treated as due immediately."""
    return card.due_date is None or card.due_date <= now


def select_candidates(
    cards: Iterable[CardReviewState],
    now: datetime,
    categories: Collection[str] | None = None,
    difficulties: Collection[str] | None = None,
    cancel: threading.Event | None = None,
) -> CandidateSets:
    """
    Partition cards into due / new / review and order each set.

    Args:
        cards: All candidate cards.
        now: Reference time for due checks and recency.
        categories: Optional category allow-list, applied before partitioning.
        difficulties: Optional difficulty allow-list, applied before partitioning.
        cancel: Checked between cards; when set the scan stops.

    Returns:
        CandidateSets with:
        - due: earliest due date first, harder cards first on ties
        - new: oldest created first
        - review: lowest confidence first, stalest review first on ties

    Raises:
        OperationCancelled: If ``cancel`` is set during the scan.
    """
    now = ensure_aware(now)
    sets = CandidateSets()

    for card in cards:
        if cancel is not None and cancel.is_set():
            raise OperationCancelled("Due-set scan cancelled")
        if not matches_filters(card, categories, difficulties):
            continue

        if card.is_new:
            sets.new.append(card)
        elif is_due(card, now):
            sets.due.append(card)
        else:
            sets.review.append(card)

    sets.due.sort(key=lambda c: (c.due_date or now, difficulty_rank(c)))
    sets.new.sort(key=lambda c: c.created_at)
    sets.review.sort(key=lambda c: (ranking_confidence(c, now), c.last_reviewed or c.created_at))

    logger.debug(
        f"Partitioned cards: due={len(sets.due)} new={len(sets.new)} review={len(sets.review)}"
    )
    return sets
