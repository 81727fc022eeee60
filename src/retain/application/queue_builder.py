"""
Queue builder for bounded study sessions.

Builds ordered study queues by:
1. Partitioning cards into due, new and not-yet-due sets
2. Taking a fixed share of the session from due cards, then from new cards
3. Filling whatever room is left with the weakest not-yet-due cards
"""

import logging
import math
import threading
from collections.abc import Hashable, Iterable
from datetime import datetime

from retain.domain.constants import DUE_FRACTION, NEW_FRACTION
from retain.domain.errors import InvalidInputError
from retain.domain.models import CandidateSets, CardReviewState, QueueOptions

from .selector import select_candidates

logger = logging.getLogger(__name__)


def build_queue_from_sets(
    sets: CandidateSets,
    options: QueueOptions,
    due_fraction: float = DUE_FRACTION,
    new_fraction: float = NEW_FRACTION,
) -> list[CardReviewState]:
    """
    Compose a session from already partitioned and ordered candidates.

    A bucket shorter than its quota is not topped up from the other buckets,
    so the queue may come out shorter than ``max_cards``.
    """
    max_cards = options.max_cards
    if max_cards < 0:
        raise InvalidInputError(f"max_cards must not be negative, got {max_cards}")

    due_count = min(math.floor(max_cards * due_fraction), len(sets.due))
    new_count = min(math.floor(max_cards * new_fraction), len(sets.new)) if options.include_new else 0

    queue: list[CardReviewState] = []
    seen: set[Hashable] = set()

    def _take(cards: Iterable[CardReviewState], count: int) -> None:
        taken = 0
        for card in cards:
            if taken >= count or len(queue) >= max_cards:
                break
            if card.id in seen:
                continue
            seen.add(card.id)
            queue.append(card)
            taken += 1

    _take(sets.due, due_count)
    _take(sets.new, new_count)
    filled = len(queue)
    _take(sets.review, max_cards - filled)

    logger.debug(
        f"Built queue of {len(queue)}/{max_cards}: "
        f"due+new={filled} review={len(queue) - filled}"
    )
    return queue


def build_queue(
    cards: Iterable[CardReviewState],
    now: datetime,
    options: QueueOptions | None = None,
    due_fraction: float = DUE_FRACTION,
    new_fraction: float = NEW_FRACTION,
    cancel: threading.Event | None = None,
) -> list[CardReviewState]:
    """
    Build a study queue of at most ``options.max_cards`` distinct cards.

    Args:
        cards: All candidate cards.
        now: Reference time for due checks.
        options: Session size, new-card toggle and filters.
        due_fraction: Share of the session reserved for due cards.
        new_fraction: Share of the session reserved for new cards.
        cancel: Cancellation signal forwarded to the due-set scan.

    Returns:
        Due cards, then new cards, then not-yet-due cards, each in selector order.
    """
    options = options or QueueOptions()
    sets = select_candidates(
        cards,
        now,
        categories=options.categories,
        difficulties=options.difficulties,
        cancel=cancel,
    )
    return build_queue_from_sets(sets, options, due_fraction, new_fraction)
