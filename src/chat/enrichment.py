"""Best-effort enrichment: routine conflict checks and fact learning.

Nothing here may fail a chat request. Every call site goes through `best_effort`.
"""

import asyncio
from typing import Awaitable, TypeVar

import structlog

from habits.models import DomainError, FrequencyUnit, UserFact, Weekday
from memory.dedupe import filter_new_facts
from memory.extractor import FactExtractor
from memory.store import FactStore
from routines.analyzer import RoutineAnalyzer
from routines.models import ConflictWarning, RoutinePattern

logger = structlog.get_logger()

T = TypeVar("T")


async def best_effort(name: str, awaitable: Awaitable[T], default: T, **context) -> T:
    """Await `awaitable`; on any error log it and return `default`.

    Cancellation is not an error and propagates.
    """
    try:
        return await awaitable
    except Exception as e:
        logger.warning("enrichment.failed", step=name, error=str(e), exc_info=True, **context)
        return default


class ConflictChecker:
    """Asks the routine analyzer whether a new schedule collides with known patterns."""

    def __init__(self, analyzer: RoutineAnalyzer):
        self.analyzer = analyzer

    async def load_patterns(self, user_id: str) -> list[RoutinePattern]:
        return await asyncio.to_thread(self.analyzer.analyze, user_id)

    async def check(
        self,
        user_id: str,
        frequency_unit: FrequencyUnit | None,
        frequency_quantity: int | None,
        days: list[Weekday] | None,
        patterns: list[RoutinePattern] | None = None,
    ) -> ConflictWarning | None:
        return await asyncio.to_thread(
            self.analyzer.detect_conflicts,
            user_id,
            frequency_unit,
            frequency_quantity,
            days,
            patterns,
        )


class FactLearner:
    """Extracts facts from a chat turn and stores the ones not already known."""

    def __init__(self, extractor: FactExtractor, store: FactStore):
        self.extractor = extractor
        self.store = store

    async def learn(
        self,
        user_id: str,
        message: str,
        ai_message: str | None,
        existing: list[UserFact],
    ) -> list[UserFact]:
        candidates = await asyncio.to_thread(self.extractor.extract, message, ai_message, existing)
        fresh = filter_new_facts(candidates, existing)

        facts = []
        for candidate in fresh:
            category = candidate.category.value if candidate.category else None
            try:
                facts.append(UserFact.create(user_id, candidate.text, category))
            except DomainError as e:
                logger.info("facts.candidate_rejected", user_id=user_id, reason=str(e))

        if facts:
            await asyncio.to_thread(self.store.add_many, facts)
        logger.info(
            "facts.learned",
            user_id=user_id,
            candidates=len(candidates),
            stored=len(facts),
        )
        return facts
