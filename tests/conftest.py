from datetime import datetime, timedelta, timezone

import pytest

from retain.application.engine import SchedulingEngine
from retain.domain.models import CardReviewState
from retain.infrastructure.adapters import InMemoryReviewStateStore

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_card(card_id, **overrides) -> CardReviewState:
    """Build a card; ``days_ago``/``due_in`` are shorthands relative to NOW."""
    days_ago = overrides.pop("days_ago", None)
    due_in = overrides.pop("due_in", None)
    values = {"created_at": NOW - timedelta(days=60)}
    values.update(overrides)
    if days_ago is not None:
        values["last_reviewed"] = NOW - timedelta(days=days_ago)
    if due_in is not None:
        values["due_date"] = NOW + timedelta(days=due_in)
    return CardReviewState(id=card_id, **values)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store():
    return InMemoryReviewStateStore()


@pytest.fixture
def engine(store):
    return SchedulingEngine(store=store, clock=lambda: NOW)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def card_factory():
    return make_card
