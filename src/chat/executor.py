"""Dispatches plan actions onto the habit domain, staging writes for one batch commit."""

import asyncio
from dataclasses import dataclass, field
from datetime import date

import structlog

from habits.models import DomainError, Habit, User
from habits.store import HabitStore
from habits.writes import HabitCompleted, NewHabit, NewHabitTag, NewLog, PendingWrite
from routines.models import RoutinePattern

from .actions import (
    Action,
    ActionResult,
    ActionStatus,
    AssignTag,
    CreateHabit,
    LogHabit,
    SuggestBreakdown,
)
from .enrichment import ConflictChecker, best_effort

logger = structlog.get_logger()


@dataclass
class ExecutionBatch:
    """Per-request state: who is acting, their local date, and staged writes.

    Habits read during the request are cached here so later actions in the same plan
    see earlier staged changes (a second log on the same day, an already-assigned tag).
    """

    user: User
    today: date
    patterns: list[RoutinePattern] = field(default_factory=list)
    writes: list[PendingWrite] = field(default_factory=list)
    habits: dict[str, Habit | None] = field(default_factory=dict)

    def stage(self, *writes: PendingWrite) -> None:
        self.writes.extend(writes)

    def mark(self) -> int:
        return len(self.writes)

    def rollback_to(self, mark: int) -> None:
        del self.writes[mark:]


class ActionExecutor:
    """Runs one action at a time. Precondition failures become Failed results."""

    def __init__(self, store: HabitStore, conflict_checker: ConflictChecker | None = None):
        self.store = store
        self.conflict_checker = conflict_checker
        self._handlers = {
            "LogHabit": self._log_habit,
            "CreateHabit": self._create_habit,
            "AssignTag": self._assign_tag,
            "SuggestBreakdown": self._suggest_breakdown,
        }

    async def execute(self, action: Action, batch: ExecutionBatch) -> ActionResult:
        handler = self._handlers.get(action.type)
        if handler is None:
            return ActionResult.failed(action.type, f"Unknown action type: {action.type}")
        try:
            return await handler(action, batch)
        except DomainError as e:
            return ActionResult.failed(action.type, str(e))

    async def _owned_habit(self, habit_id: str, batch: ExecutionBatch) -> Habit:
        """Load a habit and check it belongs to the acting user. Raises DomainError."""
        if habit_id not in batch.habits:
            batch.habits[habit_id] = await asyncio.to_thread(self.store.get_habit, habit_id)
        habit = batch.habits[habit_id]
        if habit is None or not habit.is_active:
            raise DomainError(f"Habit {habit_id} not found.")
        if habit.user_id != batch.user.id:
            raise DomainError("Habit does not belong to this user.")
        return habit

    async def _log_habit(self, action: LogHabit, batch: ExecutionBatch) -> ActionResult:
        if not action.habit_id:
            return ActionResult.failed(action.type, "Habit ID is required for logging.")
        habit = await self._owned_habit(action.habit_id, batch)

        was_completed = habit.is_completed
        entry = habit.log(batch.today, action.note)
        batch.stage(NewLog(entry))
        if habit.is_completed and not was_completed:
            batch.stage(HabitCompleted(habit.id))
        return ActionResult.success(action.type, habit.id, habit.title)

    async def _create_habit(self, action: CreateHabit, batch: ExecutionBatch) -> ActionResult:
        if not action.title or not action.title.strip():
            return ActionResult.failed(action.type, "Title is required to create a habit.")

        parent = Habit.create(
            user_id=batch.user.id,
            title=action.title,
            frequency_unit=action.frequency_unit,
            frequency_quantity=action.frequency_quantity,
            description=action.description,
            days=action.days,
            is_bad_habit=bool(action.is_bad_habit),
            due_date=action.due_date or batch.today,
        )
        # Children are built before anything is staged so one bad title drops the whole action.
        for sub_title in action.sub_habits or []:
            parent.children.append(
                Habit.create(
                    user_id=batch.user.id,
                    title=sub_title,
                    frequency_unit=parent.frequency_unit,
                    frequency_quantity=parent.frequency_quantity,
                    days=parent.days,
                    due_date=parent.due_date,
                    parent_id=parent.id,
                )
            )

        batch.stage(NewHabit(parent), *(NewHabit(child) for child in parent.children))
        result = ActionResult.success(action.type, parent.id, parent.title)

        if action.frequency_unit is not None and self.conflict_checker is not None:
            result.conflict_warning = await best_effort(
                "conflict_check",
                self.conflict_checker.check(
                    batch.user.id,
                    parent.frequency_unit,
                    parent.frequency_quantity,
                    parent.days,
                    batch.patterns,
                ),
                None,
                user_id=batch.user.id,
            )
        return result

    async def _assign_tag(self, action: AssignTag, batch: ExecutionBatch) -> ActionResult:
        if not action.habit_id:
            return ActionResult.failed(action.type, "Habit ID is required to assign tags.")
        if not action.tag_ids:
            return ActionResult.failed(action.type, "At least one tag ID is required.")
        habit = await self._owned_habit(action.habit_id, batch)

        requested = list(dict.fromkeys(action.tag_ids))
        tags = {t.id: t for t in await asyncio.to_thread(self.store.get_tags, requested)}
        for tag_id in requested:
            tag = tags.get(tag_id)
            if tag is None or tag.user_id != batch.user.id:
                logger.info("chat.tag_skipped", tag_id=tag_id, habit_id=habit.id)
                continue
            if tag_id in habit.tag_ids:
                continue
            habit.tag_ids.add(tag_id)
            batch.stage(NewHabitTag(habit.id, tag_id))
        return ActionResult.success(action.type, habit.id, habit.title)

    async def _suggest_breakdown(self, action: SuggestBreakdown, batch: ExecutionBatch) -> ActionResult:
        if not action.title or not action.title.strip():
            return ActionResult.failed(action.type, "Title is required to suggest a breakdown.")
        return ActionResult(
            type=action.type,
            status=ActionStatus.SUGGESTION,
            entity_name=action.title.strip(),
            suggested_sub_habits=action.suggested_sub_habits or [],
        )
