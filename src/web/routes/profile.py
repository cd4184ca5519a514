"""Profile routes: who am I, and the timezone used for "today"."""

from fastapi import APIRouter, Depends, HTTPException

from habits.clock import is_valid_timezone
from habits.store import HabitStore
from web.auth import get_current_user
from web.deps import get_habit_store
from web.models import ProfileOut, TimezoneUpdate

router = APIRouter(prefix="/api/profile", tags=["profile"])


def _profile_out(store: HabitStore, user_id: str) -> ProfileOut:
    profile = store.get_user(user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="User not found")
    return ProfileOut(id=profile.id, email=profile.email, name=profile.name, timezone=profile.timezone)


@router.get("", response_model=ProfileOut)
async def get_profile(
    user: dict = Depends(get_current_user),
    store: HabitStore = Depends(get_habit_store),
):
    return _profile_out(store, user["id"])


@router.put("/timezone", response_model=ProfileOut)
async def set_timezone(
    body: TimezoneUpdate,
    user: dict = Depends(get_current_user),
    store: HabitStore = Depends(get_habit_store),
):
    if not is_valid_timezone(body.timezone):
        raise HTTPException(status_code=400, detail=f"Invalid timezone: {body.timezone}")
    store.set_timezone(user["id"], body.timezone)
    return _profile_out(store, user["id"])
