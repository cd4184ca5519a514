"""Shared test fixtures for Orbit."""

import sys
from datetime import date
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "orbit.db"


@pytest.fixture
def store(db_path):
    from habits.store import HabitStore

    return HabitStore(db_path)


@pytest.fixture
def fact_store(db_path, store):
    from memory.store import FactStore

    return FactStore(db_path)


@pytest.fixture
def user(store):
    return store.ensure_user("user-1", email="one@example.com", name="One")


@pytest.fixture
def other_user(store):
    return store.ensure_user("user-2", email="two@example.com", name="Two")


@pytest.fixture
def today():
    return date(2024, 5, 6)


@pytest.fixture
def make_habit(store):
    """Create and commit a habit for a user; returns the stored habit."""
    from habits.models import FrequencyUnit, Habit
    from habits.writes import NewHabit

    def _make(user_id, title="Read", unit=FrequencyUnit.DAY, quantity=1, **kwargs):
        habit = Habit.create(
            user_id=user_id,
            title=title,
            frequency_unit=unit,
            frequency_quantity=quantity if unit else None,
            due_date=kwargs.pop("due_date", date(2024, 5, 1)),
            **kwargs,
        )
        store.commit([NewHabit(habit)])
        return store.get_habit(habit.id)

    return _make


@pytest.fixture
def make_tag(store):
    from habits.models import Tag

    def _make(user_id, name="health", color="#00ff00"):
        return store.create_tag(Tag.create(user_id, name, color))

    return _make


@pytest.fixture
def mock_provider():
    """LLM provider double: set `.generate.return_value` per test."""
    provider = MagicMock()
    provider.provider_name = "mock"
    provider.generate.return_value = '{"aiMessage": "ok", "actions": []}'
    return provider
