"""Data models for learned user facts."""

from dataclasses import dataclass
from enum import Enum


class FactCategory(str, Enum):
    PREFERENCE = "preference"
    ROUTINE = "routine"
    CONTEXT = "context"


@dataclass(frozen=True)
class FactCandidate:
    """A fact proposed by the extractor, not yet validated or stored."""

    text: str
    category: FactCategory | None = None
