"""Tests for due-set selection."""

import threading
from datetime import timedelta

import pytest

from retain.application.selector import difficulty_rank, select_candidates
from retain.domain.errors import OperationCancelled


def _ids(cards):
    return [c.id for c in cards]


class TestPartition:
    def test_new_due_and_review(self, card_factory, now):
        cards = [
            card_factory("new"),
            card_factory("due", total_reviews=1, correct_count=1, due_in=-1),
            card_factory("later", total_reviews=1, correct_count=1, due_in=3),
        ]

        sets = select_candidates(cards, now)

        assert _ids(sets.new) == ["new"]
        assert _ids(sets.due) == ["due"]
        assert _ids(sets.review) == ["later"]

    def test_due_exactly_now_is_due(self, card_factory, now):
        card = card_factory("edge", total_reviews=1, due_date=now)
        assert _ids(select_candidates([card], now).due) == ["edge"]

    def test_new_card_with_past_due_date_is_still_new(self, card_factory, now):
        card = card_factory("fresh", due_in=-5)
        sets = select_candidates([card], now)
        assert _ids(sets.new) == ["fresh"]
        assert sets.due == []

    def test_reviewed_card_without_due_date_is_due(self, card_factory, now):
        card = card_factory("odd", total_reviews=2, correct_count=1)
        assert _ids(select_candidates([card], now).due) == ["odd"]


class TestFilters:
    def test_category_and_difficulty_filters(self, card_factory, now):
        cards = [
            card_factory("a", category="Vocab", difficulty="Beginner"),
            card_factory("b", category="Grammar", difficulty="Beginner"),
            card_factory("c", category="Vocab", difficulty="Advanced"),
        ]

        sets = select_candidates(cards, now, categories=["Vocab"], difficulties=["Beginner"])

        assert _ids(sets.new) == ["a"]

    def test_empty_filters_match_everything(self, card_factory, now):
        cards = [card_factory("a", category="Vocab"), card_factory("b")]
        assert len(select_candidates(cards, now, categories=[], difficulties=[]).new) == 2


class TestOrdering:
    def test_due_most_overdue_first(self, card_factory, now):
        cards = [
            card_factory("recent", total_reviews=1, due_in=-1),
            card_factory("oldest", total_reviews=1, due_in=-10),
            card_factory("middle", total_reviews=1, due_in=-4),
        ]
        assert _ids(select_candidates(cards, now).due) == ["oldest", "middle", "recent"]

    def test_due_ties_put_harder_first(self, card_factory, now):
        due = now - timedelta(days=2)
        cards = [
            card_factory("easy", total_reviews=1, difficulty="Beginner", due_date=due),
            card_factory("unlabeled", total_reviews=1, due_date=due),
            card_factory("hard", total_reviews=1, difficulty="Advanced", due_date=due),
        ]
        assert _ids(select_candidates(cards, now).due) == ["hard", "unlabeled", "easy"]

    def test_new_oldest_created_first(self, card_factory, now):
        cards = [
            card_factory("b", created_at=now - timedelta(days=1)),
            card_factory("a", created_at=now - timedelta(days=9)),
        ]
        assert _ids(select_candidates(cards, now).new) == ["a", "b"]

    def test_review_lowest_confidence_first(self, card_factory, now):
        cards = [
            card_factory("strong", total_reviews=4, correct_count=4, days_ago=1, due_in=5),
            card_factory("weak", total_reviews=4, correct_count=1, days_ago=1, due_in=5),
            card_factory("stale", total_reviews=4, correct_count=4, days_ago=40, due_in=5),
        ]
        assert _ids(select_candidates(cards, now).review) == ["stale", "weak", "strong"]

    def test_review_ties_put_staler_first(self, card_factory, now):
        # Both beyond the 30-day window, so confidence is equal.
        cards = [
            card_factory("x", total_reviews=2, correct_count=1, days_ago=35, due_in=2),
            card_factory("y", total_reviews=2, correct_count=1, days_ago=50, due_in=2),
        ]
        assert _ids(select_candidates(cards, now).review) == ["y", "x"]

    def test_selection_is_deterministic(self, card_factory, now):
        cards = [
            card_factory(i, total_reviews=1, due_date=now - timedelta(days=i % 3))
            for i in range(10)
        ]
        first = _ids(select_candidates(cards, now).due)
        second = _ids(select_candidates(list(cards), now).due)
        assert first == second


def test_difficulty_rank(card_factory):
    assert difficulty_rank(card_factory(1, difficulty="Advanced")) == 0
    assert difficulty_rank(card_factory(1, difficulty="Intermediate")) == 1
    assert difficulty_rank(card_factory(1, difficulty="Beginner")) == 2
    assert difficulty_rank(card_factory(1, difficulty="Unknown")) == 1


def test_cancelled_scan_raises(card_factory, now):
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(OperationCancelled):
        select_candidates([card_factory(1)], now, cancel=cancel)
