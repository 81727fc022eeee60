"""
Ports (interfaces) for review state storage and result caching.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from collections.abc import Collection, Hashable
from typing import Any

from .models import CardReviewState


class ReviewStateStore(ABC):
    """
    Port for durable keyed storage of card review state.

    Implementations:
        - InMemoryReviewStateStore: Dict-backed, for tests and embedding.
        - YamlReviewStateStore: Single YAML file, used by the CLI.

    Implementations raise StoreUnavailableError when they cannot serve a call.
    The engine never retries; the error is surfaced to the caller.
    """

    @abstractmethod
    def get_all(
        self,
        categories: Collection[str] | None = None,
        difficulties: Collection[str] | None = None,
    ) -> list[CardReviewState]:
        """
        Return every stored card, optionally pre-filtered.

        Args:
            categories: If non-empty, only cards whose category is listed.
            difficulties: If non-empty, only cards whose difficulty is listed.

        Returns:
            Copies of the stored states, in insertion order.
        """
        pass

    @abstractmethod
    def get_by_id(self, card_id: Hashable) -> CardReviewState | None:
        """Return a copy of the card's state, or None if unknown."""
        pass

    @abstractmethod
    def update(self, card_id: Hashable, fields: dict[str, Any]) -> None:
        """
        Apply a partial update to a stored card.

        Raises:
            NotFoundError: If the card does not exist.
            InvalidInputError: If ``fields`` names an immutable or unknown field.
        """
        pass

    @abstractmethod
    def add(self, state: CardReviewState) -> None:
        """Insert a new card (the external collaborator's creation step)."""
        pass


class ResultCache(ABC):
    """Port for short-lived memoization of due-set and session queries."""

    @abstractmethod
    def get(self, key: Hashable) -> Any | None:
        """Return the cached value, or None on a miss or expired entry."""
        pass

    @abstractmethod
    def set(self, key: Hashable, value: Any) -> None:
        pass

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry. Called synchronously after each write."""
        pass
