"""Habit domain: entities, local-date resolution and sqlite persistence."""

from .models import DomainError, FrequencyUnit, Habit, HabitLog, Tag, User, UserFact, Weekday
from .store import HabitStore

__all__ = [
    "DomainError",
    "FrequencyUnit",
    "Habit",
    "HabitLog",
    "HabitStore",
    "Tag",
    "User",
    "UserFact",
    "Weekday",
]
