"""
Scheduling Engine: Application layer orchestrator.

Coordinates the store, the calculators and the result cache behind the
public API used by a study-session UI or an API layer.
"""

import dataclasses
import logging
import threading
from collections.abc import Callable, Hashable, Sequence
from datetime import datetime, timezone

from retain.domain.constants import (
    DEFAULT_EASE_FACTOR,
    DEFAULT_INTERVAL,
    DEFAULT_MAX_CARDS,
    MAX_RECOMMENDED_SESSION,
    MIN_RECOMMENDED_SESSION,
)
from retain.domain.errors import InvalidInputError, NotFoundError
from retain.domain.models import (
    BatchResult,
    CandidateSets,
    CardReviewState,
    NextReviewCalculation,
    QueueOptions,
    StudyOutcome,
    StudyStats,
    ensure_aware,
)
from retain.domain.ports import ResultCache, ReviewStateStore
from retain.infrastructure.cache import NullResultCache

from .batch import BatchProcessor
from .config import EngineConfig
from .queue_builder import build_queue_from_sets
from .review_calculator import compute_next_review
from .selector import select_candidates

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _filter_key(values: Sequence[str] | None) -> tuple[str, ...]:
    return tuple(sorted(values)) if values else ()


def _copy_result(value):
    """Deep enough copy of a query result that callers and the cache never share state."""
    if isinstance(value, CandidateSets):
        return CandidateSets(
            due=_copy_result(value.due),
            new=_copy_result(value.new),
            review=_copy_result(value.review),
        )
    return [dataclasses.replace(card) for card in value]


class SchedulingEngine:
    """
    Application service for scheduling reviews and composing study sessions.

    Follows Dependency Inversion: depends on the ReviewStateStore and
    ResultCache abstractions, not concrete adapter implementations.
    Holds no process-wide state; create one engine per store.
    """

    def __init__(
        self,
        store: ReviewStateStore,
        cache: ResultCache | None = None,
        config: EngineConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Args:
            store: The repository (port) holding card review state.
            cache: Result cache for due-set and queue queries. No caching if not provided.
            config: Engine settings; defaults are used if not provided.
            clock: Source of "now" for calls that do not pass one explicitly.
        """
        self._config = config or EngineConfig()
        self._store = store
        self._cache = cache if cache is not None else NullResultCache()
        self._clock = clock
        # Bumped by every invalidation; a query computed across a bump is not cached.
        self._generation = 0
        self._generation_lock = threading.Lock()
        self._processor = BatchProcessor(store, self._config.reference_response_ms)

    @property
    def config(self) -> EngineConfig:
        return self._config

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_candidates(
        self,
        categories: Sequence[str] | None = None,
        difficulties: Sequence[str] | None = None,
        now: datetime | None = None,
        cancel: threading.Event | None = None,
    ) -> CandidateSets:
        """
        Partition all cards into ordered due / new / review sets.

        Results are cached only when ``now`` is not given explicitly.
        """
        key = ("candidates", _filter_key(categories), _filter_key(difficulties), None)
        return self._cached(
            key,
            now,
            lambda at: select_candidates(
                self._store.get_all(categories, difficulties),
                at,
                categories=categories,
                difficulties=difficulties,
                cancel=cancel,
            ),
        )

    def get_due_cards(
        self,
        limit: int = DEFAULT_MAX_CARDS,
        now: datetime | None = None,
        cancel: threading.Event | None = None,
    ) -> list[CardReviewState]:
        """
        Return up to ``limit`` due cards, most overdue first.

        New (never reviewed) cards are not due cards; see get_study_queue.
        ``cancel`` aborts the scan with OperationCancelled when set.
        """
        if limit < 0:
            raise InvalidInputError(f"limit must not be negative, got {limit}")

        key = ("due", (), (), limit)
        return self._cached(
            key,
            now,
            lambda at: select_candidates(self._store.get_all(), at, cancel=cancel).due[:limit],
        )

    def get_study_queue(
        self,
        options: QueueOptions | None = None,
        now: datetime | None = None,
        cancel: threading.Event | None = None,
    ) -> list[CardReviewState]:
        """
        Build a bounded, mixed queue of due, new and weak cards for one session.

        Args:
            options: Session size and filters; ``max_cards`` defaults to the configured size.
            now: Reference time. Defaults to the engine clock.
            cancel: Aborts the underlying scan when set.
        """
        options = options or QueueOptions(max_cards=self._config.default_max_cards)
        if options.max_cards < 0:
            raise InvalidInputError(f"max_cards must not be negative, got {options.max_cards}")

        key = (
            "queue",
            _filter_key(options.categories),
            _filter_key(options.difficulties),
            (options.max_cards, options.include_new),
        )

        def _build(at: datetime) -> list[CardReviewState]:
            sets = select_candidates(
                self._store.get_all(options.categories, options.difficulties),
                at,
                categories=options.categories,
                difficulties=options.difficulties,
                cancel=cancel,
            )
            return build_queue_from_sets(
                sets,
                options,
                due_fraction=self._config.due_fraction,
                new_fraction=self._config.new_fraction,
            )

        return self._cached(key, now, _build)

    def get_study_stats(self, now: datetime | None = None) -> StudyStats:
        """Summarize the collection: due/new/reviewed counts, retention and the next review."""
        at = ensure_aware(now) if now is not None else self._clock()
        cards = self._store.get_all()
        sets = select_candidates(cards, at)

        reviewed = [c for c in cards if not c.is_new]
        total_reviews = sum(c.total_reviews for c in reviewed)
        total_correct = sum(c.correct_count for c in reviewed)

        upcoming = [c.due_date for c in cards if c.due_date is not None and c.due_date > at]

        return StudyStats(
            total_due=len(sets.due),
            new_cards=len(sets.new),
            review_cards=len(reviewed),
            average_retention=total_correct / total_reviews if total_reviews > 0 else 0.0,
            recommended_session_size=min(
                MAX_RECOMMENDED_SESSION, max(MIN_RECOMMENDED_SESSION, len(sets.due))
            ),
            next_review_time=min(upcoming) if upcoming else None,
        )

    def preview(
        self,
        card_id: Hashable,
        quality: float,
        response_time_ms: float | None = None,
        now: datetime | None = None,
    ) -> NextReviewCalculation:
        """Compute what an outcome would do to a card without writing anything."""
        state = self._store.get_by_id(card_id)
        if state is None:
            raise NotFoundError(card_id)
        at = ensure_aware(now) if now is not None else self._clock()
        return compute_next_review(
            state,
            quality,
            response_time_ms,
            timestamp=at,
            reference_times=self._config.reference_response_ms,
        )

    def get_card(self, card_id: Hashable) -> CardReviewState | None:
        return self._store.get_by_id(card_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_card(self, state: CardReviewState) -> None:
        """Register a new card with the store."""
        self._store.add(state)
        self.invalidate_cache()

    def process_outcome(self, outcome: StudyOutcome) -> NextReviewCalculation:
        """
        Apply a single study outcome.

        Raises:
            NotFoundError: If the card does not exist.
        """
        try:
            return self._processor.apply(outcome)
        finally:
            self.invalidate_cache()

    def process_outcomes(
        self,
        outcomes: Sequence[StudyOutcome],
        cancel: threading.Event | None = None,
    ) -> BatchResult:
        """
        Apply many study outcomes, skipping unknown card ids.

        The cache is cleared even when the batch is aborted part-way, since some
        cards may already have been written.
        """
        try:
            return self._processor.process(list(outcomes), cancel=cancel)
        finally:
            self.invalidate_cache()

    def reset_card(self, card_id: Hashable, now: datetime | None = None) -> None:
        """
        Put a card back at the start of its schedule and make it due immediately.

        Review history counters are kept.
        """
        if self._store.get_by_id(card_id) is None:
            raise NotFoundError(card_id)

        at = ensure_aware(now) if now is not None else self._clock()
        self._store.update(
            card_id,
            {
                "ease_factor": DEFAULT_EASE_FACTOR,
                "interval": DEFAULT_INTERVAL,
                "study_count": 0,
                "due_date": at,
            },
        )
        self.invalidate_cache()
        logger.info(f"Reset card {card_id!r}; due {at.isoformat()}")

    def invalidate_cache(self) -> None:
        with self._generation_lock:
            self._generation += 1
            self._cache.clear()

    # ------------------------------------------------------------------

    def _cached(self, key, now: datetime | None, compute):
        # An explicit "now" asks for a deterministic answer: skip the cache.
        if now is not None:
            return compute(ensure_aware(now))

        hit = self._cache.get(key)
        if hit is not None:
            return _copy_result(hit)

        with self._generation_lock:
            generation = self._generation

        value = compute(self._clock())

        with self._generation_lock:
            if generation == self._generation:
                self._cache.set(key, _copy_result(value))
            else:
                # A write landed while computing; the value may predate it.
                logger.debug(f"Not caching {key}: invalidated during computation")
        return value
