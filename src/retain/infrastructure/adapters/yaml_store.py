"""
YAML Review State Store: Infrastructure adapter for a single YAML file.

Implements ReviewStateStore on top of a file such as:

    cards:
      - id: spanish_001
        created_at: '2026-01-05T09:00:00+00:00'
        category: Vocabulary
        difficulty: Beginner
        ease_factor: 2.5
        ...

The file is read on every call and rewritten atomically on every write, so
edits made outside the process are picked up.
"""

import logging
import os
import tempfile
import threading
from collections.abc import Collection, Hashable
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from retain.domain.constants import STORE_TIMEOUT
from retain.domain.errors import InvalidInputError, NotFoundError, StoreUnavailableError
from retain.domain.models import CardReviewState
from retain.domain.ports import ReviewStateStore

from .memory_store import apply_updates, filter_cards

logger = logging.getLogger(__name__)

_DATETIME_FIELDS = ("created_at", "last_reviewed", "due_date")


def card_to_dict(card: CardReviewState) -> dict[str, Any]:
    return {
        "id": card.id,
        "created_at": card.created_at.isoformat(),
        "category": card.category,
        "difficulty": card.difficulty,
        "ease_factor": card.ease_factor,
        "interval": card.interval,
        "study_count": card.study_count,
        "total_reviews": card.total_reviews,
        "correct_count": card.correct_count,
        "last_reviewed": card.last_reviewed.isoformat() if card.last_reviewed else None,
        "due_date": card.due_date.isoformat() if card.due_date else None,
    }


def card_from_dict(data: dict[str, Any]) -> CardReviewState:
    values = dict(data)
    for key in _DATETIME_FIELDS:
        raw = values.get(key)
        # safe_load already turns unquoted timestamps into datetimes
        if isinstance(raw, str):
            values[key] = datetime.fromisoformat(raw)
    return CardReviewState(**values)


class YamlReviewStateStore(ReviewStateStore):
    """
    Stores every card in one YAML file.

    Access from threads of one process is serialized by a lock acquired with
    ``timeout`` seconds; a timeout raises StoreUnavailableError.
    """

    def __init__(self, path: Path, timeout: float = STORE_TIMEOUT):
        self.path = Path(path)
        self.timeout = timeout
        self._lock = threading.Lock()

    # -- port -------------------------------------------------------------

    def get_all(
        self,
        categories: Collection[str] | None = None,
        difficulties: Collection[str] | None = None,
    ) -> list[CardReviewState]:
        with self._locked():
            return filter_cards(self._load().values(), categories, difficulties)

    def get_by_id(self, card_id: Hashable) -> CardReviewState | None:
        with self._locked():
            return self._load().get(card_id)

    def update(self, card_id: Hashable, fields: dict[str, Any]) -> None:
        with self._locked():
            cards = self._load()
            card = cards.get(card_id)
            if card is None:
                raise NotFoundError(card_id)
            cards[card_id] = apply_updates(card, fields)
            self._save(cards)

    def add(self, state: CardReviewState) -> None:
        with self._locked():
            cards = self._load()
            if state.id in cards:
                raise InvalidInputError(f"Card {state.id!r} already exists")
            cards[state.id] = state
            self._save(cards)
            logger.info(f"Added card {state.id!r} to {self.path}")

    # -- internals --------------------------------------------------------

    def _locked(self) -> "_TimedLock":
        return _TimedLock(self._lock, self.timeout, self.path)

    def _load(self) -> dict[Hashable, CardReviewState]:
        if not self.path.exists():
            return {}
        try:
            raw = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise StoreUnavailableError(f"Could not read store {self.path}: {e}") from e

        entries = raw.get("cards") if isinstance(raw, dict) else None
        if not isinstance(entries, list):
            raise StoreUnavailableError(f"Store {self.path} has no 'cards' list")

        cards: dict[Hashable, CardReviewState] = {}
        for entry in entries:
            try:
                card = card_from_dict(entry)
            except (TypeError, ValueError) as e:
                raise StoreUnavailableError(f"Malformed card in {self.path}: {e}") from e
            cards[card.id] = card
        return cards

    def _save(self, cards: dict[Hashable, CardReviewState]) -> None:
        payload = {"cards": [card_to_dict(c) for c in cards.values()]}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        except OSError as e:
            raise StoreUnavailableError(f"Could not write store {self.path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(payload, f, sort_keys=False, allow_unicode=True)
            os.replace(tmp_name, self.path)
        except (OSError, yaml.YAMLError) as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StoreUnavailableError(f"Could not write store {self.path}: {e}") from e


class _TimedLock:
    """Context manager acquiring a lock with a timeout."""

    def __init__(self, lock: threading.Lock, timeout: float, path: Path):
        self._lock = lock
        self._timeout = timeout
        self._path = path

    def __enter__(self):
        if not self._lock.acquire(timeout=self._timeout):
            raise StoreUnavailableError(
                f"Timed out after {self._timeout}s waiting for store {self._path}"
            )
        return self

    def __exit__(self, exc_type, exc, tb):
        self._lock.release()
        return False
