"""Learned user facts: extraction, duplicate filtering and storage."""

from .dedupe import filter_new_facts
from .extractor import FactExtractor
from .models import FactCandidate, FactCategory
from .store import FactStore

__all__ = [
    "FactCandidate",
    "FactCategory",
    "FactExtractor",
    "FactStore",
    "filter_new_facts",
]
