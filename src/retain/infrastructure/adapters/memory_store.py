"""
In-Memory Review State Store: Infrastructure adapter backed by a dict.

Used by tests and by callers that embed the engine over their own persistence.
"""

import dataclasses
import logging
import threading
from collections.abc import Collection, Hashable, Iterable
from typing import Any

from retain.domain.errors import InvalidInputError, NotFoundError
from retain.domain.models import MUTABLE_FIELDS, CardReviewState
from retain.domain.ports import ReviewStateStore

logger = logging.getLogger(__name__)


def apply_updates(state: CardReviewState, fields: dict[str, Any]) -> CardReviewState:
    """Return a copy of ``state`` with ``fields`` applied, rejecting immutable or unknown keys."""
    illegal = set(fields) - MUTABLE_FIELDS
    if illegal:
        raise InvalidInputError(f"Cannot update field(s) {sorted(illegal)} of card {state.id!r}")
    return dataclasses.replace(state, **fields)


def filter_cards(
    cards: Iterable[CardReviewState],
    categories: Collection[str] | None = None,
    difficulties: Collection[str] | None = None,
) -> list[CardReviewState]:
    return [
        c
        for c in cards
        if (not categories or c.category in categories)
        and (not difficulties or c.difficulty in difficulties)
    ]


class InMemoryReviewStateStore(ReviewStateStore):
    """
    Keeps card states in a dict keyed by card id.

    All reads return copies, so callers cannot change stored state without update().
    """

    def __init__(self, cards: Iterable[CardReviewState] = ()):
        self._cards: dict[Hashable, CardReviewState] = {}
        self._lock = threading.RLock()
        for card in cards:
            self.add(card)

    def get_all(
        self,
        categories: Collection[str] | None = None,
        difficulties: Collection[str] | None = None,
    ) -> list[CardReviewState]:
        with self._lock:
            return [
                dataclasses.replace(c)
                for c in filter_cards(self._cards.values(), categories, difficulties)
            ]

    def get_by_id(self, card_id: Hashable) -> CardReviewState | None:
        with self._lock:
            card = self._cards.get(card_id)
            return dataclasses.replace(card) if card is not None else None

    def update(self, card_id: Hashable, fields: dict[str, Any]) -> None:
        with self._lock:
            card = self._cards.get(card_id)
            if card is None:
                raise NotFoundError(card_id)
            self._cards[card_id] = apply_updates(card, fields)

    def add(self, state: CardReviewState) -> None:
        with self._lock:
            if state.id in self._cards:
                raise InvalidInputError(f"Card {state.id!r} already exists")
            self._cards[state.id] = dataclasses.replace(state)
            logger.debug(f"Added card {state.id!r}")

    def __len__(self) -> int:
        return len(self._cards)
