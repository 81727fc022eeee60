"""retain: spaced-repetition scheduling engine (SM-2 variant)."""

from retain.application import EngineConfig, SchedulingEngine, resolve_config
from retain.consts import VERSION
from retain.domain import (
    BatchAbortedError,
    BatchResult,
    CardReviewState,
    InvalidInputError,
    NextReviewCalculation,
    NotFoundError,
    OperationCancelled,
    QueueOptions,
    RetainError,
    ReviewStateStore,
    StoreUnavailableError,
    StudyOutcome,
    StudyStats,
)
from retain.infrastructure.adapters import InMemoryReviewStateStore, YamlReviewStateStore
from retain.infrastructure.cache import NullResultCache, TTLResultCache

__version__ = VERSION

__all__ = [
    "BatchAbortedError",
    "BatchResult",
    "CardReviewState",
    "EngineConfig",
    "InMemoryReviewStateStore",
    "InvalidInputError",
    "NextReviewCalculation",
    "NotFoundError",
    "NullResultCache",
    "OperationCancelled",
    "QueueOptions",
    "RetainError",
    "ReviewStateStore",
    "SchedulingEngine",
    "StoreUnavailableError",
    "StudyOutcome",
    "StudyStats",
    "TTLResultCache",
    "YamlReviewStateStore",
    "resolve_config",
]
