"""Tests for the SM-2 review calculator."""

from datetime import timedelta

import pytest

from retain.application import review_calculator as rc
from retain.domain.constants import MAX_EASE_FACTOR, MIN_EASE_FACTOR
from retain.domain.errors import InvalidInputError


class TestNormalizeQuality:
    """Clamping and rounding of raw quality values."""

    @pytest.mark.parametrize(
        "raw, expected",
        [(-3, 0), (0, 0), (2.4, 2), (2.5, 3), (3, 3), (4.6, 5), (5, 5), (9.9, 5)],
    )
    def test_clamped_then_rounded(self, raw, expected):
        assert rc.normalize_quality(raw) == expected

    @pytest.mark.parametrize("raw", ["4", None, True, float("nan"), float("inf")])
    def test_malformed_quality_rejected(self, raw):
        with pytest.raises(InvalidInputError):
            rc.normalize_quality(raw)


class TestEaseFactor:
    """Tests for ease factor calculation."""

    def test_perfect_response_increases_ease(self):
        assert rc.calculate_ease_factor(2.5, 5) == pytest.approx(2.6)

    def test_good_response_maintains_ease(self):
        assert rc.calculate_ease_factor(2.5, 4) == pytest.approx(2.5)

    def test_hard_response_decreases_ease(self):
        assert rc.calculate_ease_factor(2.5, 3) == pytest.approx(2.36)

    def test_failure_takes_flat_penalty(self):
        for quality in (0, 1, 2):
            assert rc.calculate_ease_factor(2.5, quality) == pytest.approx(2.3)

    def test_ease_never_below_minimum(self):
        ease = MIN_EASE_FACTOR
        for _ in range(10):
            ease = rc.calculate_ease_factor(ease, 0)
        assert ease == MIN_EASE_FACTOR

    def test_ease_never_above_maximum(self):
        ease = 2.95
        for _ in range(10):
            ease = rc.calculate_ease_factor(ease, 5)
        assert ease == MAX_EASE_FACTOR


class TestInterval:
    """Tests for interval calculation."""

    def test_first_pass(self):
        assert rc.calculate_interval(1, 0, 2.5, 4) == (1, 1)

    def test_second_pass(self):
        assert rc.calculate_interval(1, 1, 2.5, 4) == (6, 2)

    def test_later_pass_multiplies_by_ease(self):
        assert rc.calculate_interval(6, 2, 2.6, 5) == (16, 3)

    def test_failure_steps_repetitions_back(self):
        assert rc.calculate_interval(16, 3, 2.4, 1) == (1, 2)
        assert rc.calculate_interval(16, 0, 2.4, 1) == (1, 0)

    def test_boundary_quality_3_is_pass(self):
        interval, reps = rc.calculate_interval(1, 1, 2.36, 3)
        assert interval == 6
        assert reps == 2


class TestResponseTimeModifier:
    def test_fast_response_boosts_interval(self):
        # ratio 2000 / 8000 = 0.25
        assert rc.apply_response_time_modifier(10, 2000, 8000) == 11

    def test_slow_response_shrinks_interval(self):
        # ratio 20000 / 8000 = 2.5
        assert rc.apply_response_time_modifier(10, 20000, 8000) == 9

    def test_normal_response_unchanged(self):
        assert rc.apply_response_time_modifier(10, 8000, 8000) == 10

    def test_floor_of_one_day(self):
        assert rc.apply_response_time_modifier(1, 50000, 5000) == 1

    def test_missing_reference_leaves_interval(self):
        assert rc.apply_response_time_modifier(10, 2000, None) == 10


class TestComputeNextReview:
    """Scenario tests for the full calculation."""

    def test_fresh_card_first_correct_answer(self, card_factory, now):
        state = card_factory(1, ease_factor=2.5, interval=1, study_count=0)

        result = rc.compute_next_review(state, 4, timestamp=now)

        assert result.next_interval == 1
        assert result.next_repetition == 1
        assert result.next_ease_factor == pytest.approx(2.5)
        assert result.next_due_date == now + timedelta(days=1)
        assert result.passed is True
        assert result.quality == 4

    def test_mature_card_perfect_answer(self, card_factory, now):
        state = card_factory(
            1, ease_factor=2.5, interval=6, study_count=2, total_reviews=3, correct_count=3
        )

        result = rc.compute_next_review(state, 5, timestamp=now)

        assert result.next_ease_factor == pytest.approx(2.6)
        assert result.next_interval == 16
        assert result.next_repetition == 3
        assert result.next_due_date == now + timedelta(days=16)

    def test_failure_on_mature_card(self, card_factory, now):
        state = card_factory(1, ease_factor=2.6, interval=16, study_count=3)

        result = rc.compute_next_review(state, 1, timestamp=now)

        assert result.next_interval == 1
        assert result.next_repetition == 2
        assert result.next_ease_factor == pytest.approx(2.4)
        assert result.passed is False

    @pytest.mark.parametrize("quality", [0, 1, 2, 0.4, 2.49])
    def test_any_failure_resets_interval(self, card_factory, now, quality):
        state = card_factory(1, ease_factor=2.8, interval=40, study_count=5)
        assert rc.compute_next_review(state, quality, timestamp=now).next_interval == 1

    def test_fast_response_uses_difficulty_reference(self, card_factory, now):
        # interval 4 * ease 2.5 = 10 before the modifier
        state = card_factory(
            1, difficulty="Intermediate", ease_factor=2.5, interval=4, study_count=2
        )

        result = rc.compute_next_review(state, 4, 2000, timestamp=now)

        assert result.next_interval == 11
        assert result.next_due_date == now + timedelta(days=11)

    def test_modifier_never_touches_ease(self, card_factory, now):
        state = card_factory(1, difficulty="Beginner", ease_factor=3.0, interval=10, study_count=3)
        result = rc.compute_next_review(state, 5, 100, timestamp=now)
        assert result.next_ease_factor == MAX_EASE_FACTOR

    def test_unknown_difficulty_skips_modifier(self, card_factory, now):
        state = card_factory(1, difficulty="Expert", ease_factor=2.5, interval=4, study_count=2)
        assert rc.compute_next_review(state, 4, 100, timestamp=now).next_interval == 10

    def test_missing_interval_and_count_use_defaults(self, card_factory, now):
        state = card_factory(1, interval=None, study_count=None)
        result = rc.compute_next_review(state, 5, timestamp=now)
        assert result.next_interval == 1
        assert result.next_repetition == 1

    def test_out_of_range_quality_is_clamped(self, card_factory, now):
        state = card_factory(1, ease_factor=2.5, interval=6, study_count=2)
        high = rc.compute_next_review(state, 11, timestamp=now)
        low = rc.compute_next_review(state, -4, timestamp=now)
        assert high.quality == 5
        assert low.quality == 0
        assert low.next_interval == 1

    def test_ease_stays_in_bounds_over_long_sequences(self, card_factory, now):
        state = card_factory(1)
        qualities = [5, 5, 5, 5, 5, 5, 0, 0, 0, 0, 0, 0, 0, 3, 3, 3, 1, 5, 5, 5]
        for q in qualities:
            result = rc.compute_next_review(state, q, timestamp=now)
            assert MIN_EASE_FACTOR <= result.next_ease_factor <= MAX_EASE_FACTOR
            assert result.next_interval >= 1
            state = card_factory(
                1,
                ease_factor=result.next_ease_factor,
                interval=result.next_interval,
                study_count=result.next_repetition,
            )
