"""
Outcome processing: applies graded reviews to stored card state.

Single outcomes and batches share one code path; they differ only in how an
unknown card id is handled.
"""

import logging
import threading
from collections.abc import Mapping, Sequence

from retain.domain.constants import DEFAULT_REFERENCE_RESPONSE_MS
from retain.domain.errors import (
    BatchAbortedError,
    NotFoundError,
    OperationCancelled,
    StoreUnavailableError,
)
from retain.domain.models import BatchResult, NextReviewCalculation, StudyOutcome
from retain.domain.ports import ReviewStateStore

from .confidence import validate_response_time
from .review_calculator import compute_next_review, normalize_quality

logger = logging.getLogger(__name__)


class BatchProcessor:
    """
    Writes the result of each study outcome through the review state store.

    Each outcome is fetched, computed and persisted on its own, so two outcomes
    for the same card in one batch are applied one after the other.
    """

    def __init__(
        self,
        store: ReviewStateStore,
        reference_times: Mapping[str, float] = DEFAULT_REFERENCE_RESPONSE_MS,
    ):
        self._store = store
        self._reference_times = reference_times

    def apply(self, outcome: StudyOutcome) -> NextReviewCalculation:
        """
        Apply one outcome.

        Raises:
            NotFoundError: If the card does not exist.
            InvalidInputError: If the outcome's quality or response time is malformed.
            StoreUnavailableError: Propagated from the store.
        """
        state = self._store.get_by_id(outcome.card_id)
        if state is None:
            raise NotFoundError(outcome.card_id)

        result = compute_next_review(
            state,
            outcome.quality,
            outcome.response_time_ms,
            timestamp=outcome.timestamp,
            reference_times=self._reference_times,
        )
        self._store.update(outcome.card_id, result.to_updates(state, outcome.timestamp))

        logger.info(
            f"Updated card {outcome.card_id}: quality={result.quality} "
            f"interval={result.next_interval}d due={result.next_due_date.date().isoformat()} "
            f"confidence={result.confidence:.2f}"
        )
        return result

    def process(
        self,
        outcomes: Sequence[StudyOutcome],
        cancel: threading.Event | None = None,
    ) -> BatchResult:
        """
        Apply many outcomes, skipping unknown card ids.

        Args:
            outcomes: Outcomes in the order they should be applied.
            cancel: Checked before each outcome.

        Returns:
            BatchResult listing written and skipped card ids.

        Raises:
            InvalidInputError: An outcome is malformed; raised before any write.
            BatchAbortedError: The store failed; nothing after the failing outcome was applied.
            OperationCancelled: ``cancel`` was set; ``pending`` holds the unapplied outcomes.
        """
        # Reject malformed input before anything is written.
        for outcome in outcomes:
            normalize_quality(outcome.quality)
            validate_response_time(outcome.response_time_ms)

        result = BatchResult()

        for index, outcome in enumerate(outcomes):
            if cancel is not None and cancel.is_set():
                logger.warning(
                    f"Batch cancelled after {len(result.processed)} of {len(outcomes)} outcomes"
                )
                raise OperationCancelled("Batch cancelled", pending=outcomes[index:])

            try:
                self.apply(outcome)
            except NotFoundError:
                logger.warning(f"Skipping outcome for unknown card {outcome.card_id!r}")
                result.skipped.append(outcome.card_id)
                continue
            except StoreUnavailableError as e:
                logger.error(
                    f"Store unavailable while processing card {outcome.card_id!r}; "
                    f"{len(outcomes) - index} outcome(s) not applied: {e}"
                )
                raise BatchAbortedError(
                    f"Batch aborted at outcome {index}: {e}",
                    processed=result.processed,
                    pending=outcomes[index:],
                ) from e

            result.processed.append(outcome.card_id)

        logger.info(
            f"Processed batch: {len(result.processed)} updated, {len(result.skipped)} skipped"
        )
        return result
