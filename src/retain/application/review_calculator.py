"""
Next-review calculation (SM-2 variant).

Implements SM-2 as originally developed for SuperMemo, with two changes:
a failed review only steps the repetition count back by one instead of
resetting it, and a fast or slow answer nudges the next interval.

This is a pure computation module with no I/O.
"""

import math
from collections.abc import Mapping
from datetime import datetime, timedelta

from retain.domain.constants import (
    DEFAULT_EASE_FACTOR,
    DEFAULT_INTERVAL,
    DEFAULT_REFERENCE_RESPONSE_MS,
    FAILURE_EASE_PENALTY,
    FAST_INTERVAL_MODIFIER,
    FAST_INTERVAL_RATIO,
    FIRST_INTERVAL,
    MAX_EASE_FACTOR,
    MIN_EASE_FACTOR,
    PASS_THRESHOLD,
    QUALITY_MAX,
    QUALITY_MIN,
    SECOND_INTERVAL,
    SLOW_INTERVAL_MODIFIER,
    SLOW_INTERVAL_RATIO,
)
from retain.domain.errors import InvalidInputError
from retain.domain.models import CardReviewState, NextReviewCalculation, ensure_aware

from .confidence import estimate_confidence, reference_time_for, validate_response_time


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (2.5 -> 3), unlike round()."""
    return int(math.floor(value + 0.5))


def clamp_ease(ease: float) -> float:
    return max(MIN_EASE_FACTOR, min(MAX_EASE_FACTOR, ease))


def normalize_quality(quality: object) -> int:
    """
    Clamp a raw quality to [0, 5] and round it to the nearest integer.

    Raises:
        InvalidInputError: If quality is not a finite real number.
    """
    if isinstance(quality, bool) or not isinstance(quality, (int, float)):
        raise InvalidInputError(f"Quality must be a number, got {type(quality).__name__}")
    if math.isnan(quality) or math.isinf(quality):
        raise InvalidInputError(f"Quality must be finite, got {quality}")
    return round_half_up(max(QUALITY_MIN, min(QUALITY_MAX, quality)))


def calculate_ease_factor(current_ease: float, quality: int) -> float:
    """
    Calculate the new ease factor for a normalized quality.

    Passing reviews use the SM-2 formula:
    EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))

    Failed reviews take a flat 0.2 penalty. Both are clamped to [1.3, 3.0].
    """
    if quality < PASS_THRESHOLD:
        return clamp_ease(current_ease - FAILURE_EASE_PENALTY)
    miss = QUALITY_MAX - quality
    return clamp_ease(current_ease + (0.1 - miss * (0.08 + miss * 0.02)))


def calculate_interval(
    current_interval: int,
    repetitions: int,
    ease_factor: float,
    quality: int,
) -> tuple[int, int]:
    """
    Calculate the next interval and repetition count.

    Returns tuple of (new_interval, new_repetitions).

    ``ease_factor`` must already be the updated ease factor.
    """
    if quality < PASS_THRESHOLD:
        return (DEFAULT_INTERVAL, max(0, repetitions - 1))

    if repetitions == 0:
        new_interval = FIRST_INTERVAL
    elif repetitions == 1:
        new_interval = SECOND_INTERVAL
    else:
        new_interval = round_half_up(current_interval * ease_factor)

    return (max(1, new_interval), repetitions + 1)


def apply_response_time_modifier(
    base_interval: int,
    response_time_ms: float | None,
    reference_ms: float | None,
) -> int:
    """
    Lengthen the interval after a very fast answer, shorten it after a very slow one.

    Returns the interval unchanged when either time is missing.
    """
    if response_time_ms is None or reference_ms is None:
        return base_interval

    ratio = response_time_ms / reference_ms
    modifier = 1.0
    if ratio < FAST_INTERVAL_RATIO:
        modifier = FAST_INTERVAL_MODIFIER
    elif ratio > SLOW_INTERVAL_RATIO:
        modifier = SLOW_INTERVAL_MODIFIER

    return max(1, round_half_up(base_interval * modifier))


def compute_next_review(
    state: CardReviewState,
    quality: float,
    response_time_ms: float | None = None,
    *,
    timestamp: datetime,
    reference_times: Mapping[str, float] = DEFAULT_REFERENCE_RESPONSE_MS,
) -> NextReviewCalculation:
    """
    Calculate the complete scheduling result for one outcome.

    Args:
        state: The card's current review state.
        quality: Raw recall quality (0-5); clamped and rounded before use.
        response_time_ms: Time taken to answer, if measured.
        timestamp: When the outcome happened. The due date counts from here.
        reference_times: Expected response time per difficulty label.

    Returns:
        NextReviewCalculation with the new scheduling parameters.
    """
    q = normalize_quality(quality)
    response_time = validate_response_time(response_time_ms)

    current_ease = clamp_ease(
        state.ease_factor if state.ease_factor is not None else DEFAULT_EASE_FACTOR
    )
    current_interval = max(1, state.interval or DEFAULT_INTERVAL)
    repetitions = max(0, state.study_count or 0)

    new_ease = calculate_ease_factor(current_ease, q)
    new_interval, new_repetitions = calculate_interval(
        current_interval, repetitions, new_ease, q
    )
    new_interval = apply_response_time_modifier(
        new_interval, response_time, reference_time_for(state.difficulty, reference_times)
    )

    reviewed_at = ensure_aware(timestamp)
    return NextReviewCalculation(
        next_interval=new_interval,
        next_ease_factor=new_ease,
        next_repetition=new_repetitions,
        next_due_date=reviewed_at + timedelta(days=new_interval),
        confidence=estimate_confidence(state, q, response_time, reference_times),
        quality=q,
        passed=q >= PASS_THRESHOLD,
    )
