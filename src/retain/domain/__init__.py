# Domain Package
from .errors import (
    BatchAbortedError,
    InvalidInputError,
    NotFoundError,
    OperationCancelled,
    RetainError,
    StoreUnavailableError,
)
from .models import (
    BatchResult,
    CandidateSets,
    CardReviewState,
    NextReviewCalculation,
    QueueOptions,
    StudyOutcome,
    StudyStats,
)
from .ports import ResultCache, ReviewStateStore

__all__ = [
    "BatchAbortedError",
    "BatchResult",
    "CandidateSets",
    "CardReviewState",
    "InvalidInputError",
    "NextReviewCalculation",
    "NotFoundError",
    "OperationCancelled",
    "QueueOptions",
    "ResultCache",
    "RetainError",
    "ReviewStateStore",
    "StoreUnavailableError",
    "StudyOutcome",
    "StudyStats",
]
