"""User fact routes: list, add, edit, soft-delete."""

import structlog
from fastapi import APIRouter, Depends, HTTPException

from habits.models import DomainError, UserFact
from memory.dedupe import filter_new_facts
from memory.models import FactCandidate
from memory.store import FactStore
from web.auth import get_current_user
from web.deps import get_fact_store
from web.models import FactCreate, FactOut, FactUpdate

logger = structlog.get_logger()

router = APIRouter(prefix="/api/user-facts", tags=["user-facts"])


def _fact_out(fact: UserFact) -> FactOut:
    return FactOut(
        id=fact.id,
        text=fact.text,
        category=fact.category,
        extracted_at=fact.extracted_at,
        updated_at=fact.updated_at,
    )


@router.get("", response_model=list[FactOut])
async def list_facts(
    user: dict = Depends(get_current_user),
    store: FactStore = Depends(get_fact_store),
):
    return [_fact_out(f) for f in store.find_active(user["id"])]


@router.post("", response_model=FactOut, status_code=201)
async def add_fact(
    body: FactCreate,
    user: dict = Depends(get_current_user),
    store: FactStore = Depends(get_fact_store),
):
    """Add a fact by hand. Rejects text already on file, ignoring case and surrounding spaces."""
    fact = UserFact.create(user["id"], body.text, body.category.value if body.category else None)
    if not filter_new_facts([FactCandidate(fact.text)], store.find_active(user["id"])):
        raise DomainError("A similar fact already exists.")
    store.add(fact)
    logger.info("facts.added", user_id=user["id"], fact_id=fact.id)
    return _fact_out(fact)


@router.put("/{fact_id}", response_model=FactOut)
async def update_fact(
    fact_id: str,
    body: FactUpdate,
    user: dict = Depends(get_current_user),
    store: FactStore = Depends(get_fact_store),
):
    fact = store.get(user["id"], fact_id)
    if not fact:
        raise HTTPException(status_code=404, detail="Fact not found")
    fact.update(body.text, body.category.value if body.category else None)
    store.update(fact)
    return _fact_out(fact)


@router.delete("/{fact_id}")
async def delete_fact(
    fact_id: str,
    user: dict = Depends(get_current_user),
    store: FactStore = Depends(get_fact_store),
):
    """Soft-delete a fact."""
    if not store.soft_delete(user["id"], fact_id):
        raise HTTPException(status_code=404, detail="Fact not found")
    logger.info("facts.deleted", user_id=user["id"], fact_id=fact_id)
    return {"ok": True}
