"""Tag routes: list, create, delete, and attach/detach on habits."""

import structlog
from fastapi import APIRouter, Depends, HTTPException

from habits.models import DomainError, Tag
from habits.store import HabitStore
from habits.writes import NewHabitTag
from web.auth import get_current_user
from web.deps import get_habit_store
from web.models import TagCreate, TagOut
from web.routes.habits import owned_habit

logger = structlog.get_logger()

router = APIRouter(tags=["tags"])


def _owned_tag(store: HabitStore, user_id: str, tag_id: str) -> Tag:
    found = store.get_tags([tag_id])
    if not found or found[0].user_id != user_id:
        raise HTTPException(status_code=404, detail="Tag not found")
    return found[0]


@router.get("/api/tags", response_model=list[TagOut])
async def list_tags(
    user: dict = Depends(get_current_user),
    store: HabitStore = Depends(get_habit_store),
):
    return [TagOut(id=t.id, name=t.name, color=t.color) for t in store.find_tags(user["id"])]


@router.post("/api/tags", response_model=TagOut, status_code=201)
async def create_tag(
    body: TagCreate,
    user: dict = Depends(get_current_user),
    store: HabitStore = Depends(get_habit_store),
):
    name = body.name.strip()
    if any(t.name == name for t in store.find_tags(user["id"])):
        raise DomainError("A tag with this name already exists.")
    tag = store.create_tag(Tag.create(user["id"], body.name, body.color))
    return TagOut(id=tag.id, name=tag.name, color=tag.color)


@router.delete("/api/tags/{tag_id}")
async def delete_tag(
    tag_id: str,
    user: dict = Depends(get_current_user),
    store: HabitStore = Depends(get_habit_store),
):
    if not store.delete_tag(user["id"], tag_id):
        raise HTTPException(status_code=404, detail="Tag not found")
    return {"ok": True}


@router.post("/api/habits/{habit_id}/tags/{tag_id}")
async def assign_tag(
    habit_id: str,
    tag_id: str,
    user: dict = Depends(get_current_user),
    store: HabitStore = Depends(get_habit_store),
):
    """Attach a tag to a habit. Attaching twice is a no-op."""
    owned_habit(store, user["id"], habit_id)
    _owned_tag(store, user["id"], tag_id)
    store.commit([NewHabitTag(habit_id, tag_id)])
    return {"ok": True}


@router.delete("/api/habits/{habit_id}/tags/{tag_id}")
async def unassign_tag(
    habit_id: str,
    tag_id: str,
    user: dict = Depends(get_current_user),
    store: HabitStore = Depends(get_habit_store),
):
    owned_habit(store, user["id"], habit_id)
    if not store.unassign_tag(habit_id, tag_id):
        raise HTTPException(status_code=404, detail="Tag not assigned to habit")
    return {"ok": True}
