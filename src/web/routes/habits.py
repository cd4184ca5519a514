"""Habit routes: list, create, log, delete."""

import structlog
from fastapi import APIRouter, Depends, HTTPException

from habits.clock import user_local_today
from habits.models import Habit
from habits.store import HabitStore
from habits.writes import HabitCompleted, NewHabit, NewLog
from web.auth import get_current_user
from web.deps import get_habit_store
from web.models import HabitCreate, HabitOut, LogCreate, LogOut

logger = structlog.get_logger()

router = APIRouter(prefix="/api/habits", tags=["habits"])


def habit_out(habit: Habit) -> HabitOut:
    return HabitOut(
        id=habit.id,
        title=habit.title,
        description=habit.description,
        frequency_unit=habit.frequency_unit,
        frequency_quantity=habit.frequency_quantity,
        days=habit.days,
        is_bad_habit=habit.is_bad_habit,
        is_completed=habit.is_completed,
        due_date=habit.due_date,
        parent_id=habit.parent_id,
        tag_ids=sorted(habit.tag_ids),
        children=[habit_out(c) for c in habit.children],
    )


def owned_habit(store: HabitStore, user_id: str, habit_id: str) -> Habit:
    """Load an active habit of the user or raise 404."""
    habit = store.get_habit(habit_id)
    if not habit or habit.user_id != user_id or not habit.is_active:
        raise HTTPException(status_code=404, detail="Habit not found")
    return habit


@router.get("", response_model=list[HabitOut])
async def list_habits(
    user: dict = Depends(get_current_user),
    store: HabitStore = Depends(get_habit_store),
):
    """Active top-level habits with their sub-habits."""
    return [habit_out(h) for h in store.find_active_habits(user["id"])]


@router.post("", response_model=HabitOut, status_code=201)
async def create_habit(
    body: HabitCreate,
    user: dict = Depends(get_current_user),
    store: HabitStore = Depends(get_habit_store),
):
    if body.parent_id:
        owned_habit(store, user["id"], body.parent_id)

    profile = store.get_user(user["id"])
    habit = Habit.create(
        user_id=user["id"],
        title=body.title,
        frequency_unit=body.frequency_unit,
        frequency_quantity=body.frequency_quantity,
        description=body.description,
        days=body.days,
        is_bad_habit=body.is_bad_habit,
        due_date=body.due_date or user_local_today(profile.timezone if profile else None),
        parent_id=body.parent_id,
    )
    store.commit([NewHabit(habit)])
    logger.info("habits.created", user_id=user["id"], habit_id=habit.id)
    return habit_out(habit)


@router.post("/{habit_id}/log", response_model=LogOut, status_code=201)
async def log_habit(
    habit_id: str,
    body: LogCreate,
    user: dict = Depends(get_current_user),
    store: HabitStore = Depends(get_habit_store),
):
    """Record a completion for a date (defaults to the user's local today)."""
    habit = owned_habit(store, user["id"], habit_id)
    profile = store.get_user(user["id"])
    on = body.date or user_local_today(profile.timezone if profile else None)

    was_completed = habit.is_completed
    entry = habit.log(on, body.note)
    writes = [NewLog(entry)]
    if habit.is_completed and not was_completed:
        writes.append(HabitCompleted(habit.id))
    store.commit(writes)
    return LogOut(id=entry.id, habit_id=entry.habit_id, date=entry.date, note=entry.note)


@router.get("/{habit_id}/logs", response_model=list[LogOut])
async def list_logs(
    habit_id: str,
    user: dict = Depends(get_current_user),
    store: HabitStore = Depends(get_habit_store),
):
    owned_habit(store, user["id"], habit_id)
    return [
        LogOut(id=entry.id, habit_id=entry.habit_id, date=entry.date, note=entry.note)
        for entry in store.get_logs(habit_id)
    ]


@router.delete("/{habit_id}")
async def delete_habit(
    habit_id: str,
    user: dict = Depends(get_current_user),
    store: HabitStore = Depends(get_habit_store),
):
    """Soft-delete a habit and its sub-habits."""
    owned_habit(store, user["id"], habit_id)
    store.delete_habit(habit_id)
    logger.info("habits.deleted", user_id=user["id"], habit_id=habit_id)
    return {"ok": True}
