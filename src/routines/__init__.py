"""Routine pattern inference and schedule conflict detection."""

from .analyzer import RoutineAnalysisError, RoutineAnalyzer
from .models import ConflictingHabit, ConflictWarning, RoutinePattern, TimeBlock

__all__ = [
    "ConflictingHabit",
    "ConflictWarning",
    "RoutineAnalysisError",
    "RoutineAnalyzer",
    "RoutinePattern",
    "TimeBlock",
]
