"""Exception taxonomy for the scheduling engine."""

from collections.abc import Hashable, Sequence
from typing import Any


class RetainError(Exception):
    """Base class for all engine errors."""


class InvalidInputError(RetainError, ValueError):
    """Malformed input rejected before any computation (e.g. a non-numeric quality)."""


class NotFoundError(RetainError, KeyError):
    """A card id was not present in the review state store."""

    def __init__(self, card_id: Hashable):
        super().__init__(card_id)
        self.card_id = card_id

    def __str__(self) -> str:
        return f"Card not found: {self.card_id!r}"


class StoreUnavailableError(RetainError):
    """The review state store could not serve a read or write."""


class BatchAbortedError(StoreUnavailableError):
    """
    A batch stopped part-way because the store became unavailable.

    Attributes:
        processed: Card ids whose updates were written before the failure.
        pending: Outcomes that were not applied (the failing one first).
    """

    def __init__(self, message: str, processed: Sequence[Hashable], pending: Sequence[Any]):
        super().__init__(message)
        self.processed = list(processed)
        self.pending = list(pending)


class OperationCancelled(RetainError):
    """A scan or batch was aborted through its cancellation signal."""

    def __init__(self, message: str = "Operation cancelled", pending: Sequence[Any] = ()):
        super().__init__(message)
        self.pending = list(pending)
