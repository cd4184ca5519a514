"""Pending writes staged during a chat turn and applied in one commit."""

from dataclasses import dataclass
from typing import Union

from .models import Habit, HabitLog


@dataclass(frozen=True)
class NewHabit:
    habit: Habit


@dataclass(frozen=True)
class NewLog:
    log: HabitLog


@dataclass(frozen=True)
class NewHabitTag:
    habit_id: str
    tag_id: str


@dataclass(frozen=True)
class HabitCompleted:
    habit_id: str


PendingWrite = Union[NewHabit, NewLog, NewHabitTag, HabitCompleted]
