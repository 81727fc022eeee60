"""
Confidence estimation for cards.

This is a pure computation module with no I/O.
"""

import math
from collections.abc import Mapping
from datetime import datetime

from retain.domain.constants import (
    DEFAULT_REFERENCE_RESPONSE_MS,
    FAST_CONFIDENCE_MODIFIER,
    FAST_CONFIDENCE_RATIO,
    QUALITY_MAX,
    RECENCY_WINDOW_DAYS,
    SLOW_CONFIDENCE_MODIFIER,
    SLOW_CONFIDENCE_RATIO,
)
from retain.domain.errors import InvalidInputError
from retain.domain.models import CardReviewState, ensure_aware

SECONDS_PER_DAY = 86400.0


def reference_time_for(
    difficulty: str | None,
    reference_times: Mapping[str, float] = DEFAULT_REFERENCE_RESPONSE_MS,
) -> float | None:
    """Expected response time (ms) for a difficulty label, or None if the label is unknown."""
    if difficulty is None:
        return None
    reference = reference_times.get(difficulty)
    if reference is None or reference <= 0:
        return None
    return float(reference)


def validate_response_time(response_time_ms: object) -> float | None:
    """
    Check a response time and return it as a float.

    Non-positive times carry no signal and are treated as absent.
    """
    if response_time_ms is None:
        return None
    if isinstance(response_time_ms, bool) or not isinstance(response_time_ms, (int, float)):
        raise InvalidInputError(
            f"response_time_ms must be a number, got {type(response_time_ms).__name__}"
        )
    if math.isnan(response_time_ms) or math.isinf(response_time_ms):
        raise InvalidInputError(f"response_time_ms must be finite, got {response_time_ms}")
    if response_time_ms <= 0:
        return None
    return float(response_time_ms)


def success_rate(state: CardReviewState) -> float:
    """Share of all attempts that passed."""
    return state.correct_count / max(1, state.total_reviews)


def recency_factor(state: CardReviewState, now: datetime) -> float:
    """
    Linear decay from 1 (reviewed just now) to 0 (30+ days ago).

    Never-reviewed cards score 0.
    """
    if state.last_reviewed is None or state.total_reviews == 0:
        return 0.0
    elapsed = (ensure_aware(now) - state.last_reviewed).total_seconds() / SECONDS_PER_DAY
    return max(0.0, min(1.0, 1.0 - elapsed / RECENCY_WINDOW_DAYS))


def ranking_confidence(state: CardReviewState, now: datetime) -> float:
    """History-only confidence used to order cards that are not tied to an outcome."""
    if state.total_reviews == 0:
        return 0.0
    return (success_rate(state) + recency_factor(state, now)) / 2


def estimate_confidence(
    state: CardReviewState,
    quality: int | None = None,
    response_time_ms: float | None = None,
    reference_times: Mapping[str, float] = DEFAULT_REFERENCE_RESPONSE_MS,
) -> float:
    """
    Estimate how well a card is retained, on a 0-1 scale.

    Args:
        state: Card state before the outcome is applied.
        quality: Effective (already normalized) quality of a fresh outcome, if any.
        response_time_ms: Time taken to answer the fresh outcome.
        reference_times: Expected response time per difficulty label.

    Returns:
        The fresh quality averaged with the historical success rate when both
        exist, whichever one exists otherwise, then nudged by response speed.
    """
    has_history = state.total_reviews > 0
    if quality is not None and has_history:
        confidence = (quality / QUALITY_MAX + success_rate(state)) / 2
    elif quality is not None:
        confidence = quality / QUALITY_MAX
    else:
        confidence = success_rate(state)

    response_time = validate_response_time(response_time_ms)
    reference = reference_time_for(state.difficulty, reference_times)
    if response_time is not None and reference is not None:
        ratio = response_time / reference
        if ratio < FAST_CONFIDENCE_RATIO:
            confidence = min(1.0, confidence * FAST_CONFIDENCE_MODIFIER)
        elif ratio > SLOW_CONFIDENCE_RATIO:
            confidence = confidence * SLOW_CONFIDENCE_MODIFIER

    return max(0.0, min(1.0, confidence))
