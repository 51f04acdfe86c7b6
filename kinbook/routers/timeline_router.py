from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from kinbook.auth import get_current_session
from kinbook.constants import EVENTS, MEMORIES
from kinbook.core.entity_store import EntityStore
from kinbook.database import get_db
from kinbook.schemas.auth_schema import CurrentSession
from kinbook.schemas.event_schema import (
    EventCreate,
    EventOut,
    MemoryCreate,
    MemoryOut,
)


router = APIRouter(tags=["Timeline"])


def _involving(items: list, person_id: Optional[str]) -> list:
    if not person_id:
        return items
    return [item for item in items if person_id in (item.people_ids or [])]


# ---------------------------------------------------------
# EVENTS
# ---------------------------------------------------------
@router.post("/events", response_model=EventOut)
def create_event(
    payload: EventCreate,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_session),
):
    store = EntityStore(db)
    event_id = store.create(EVENTS, {
        "title": payload.title,
        "date": payload.date,
        "description": payload.description,
        "type": payload.type.value,
        "people_ids": list(dict.fromkeys(payload.people_ids)),
        "created_by": session.user_id,
    })
    return store.get(EVENTS, event_id)


@router.get("/events", response_model=List[EventOut])
def list_events(
    person_id: Optional[str] = None,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_session),
):
    events = EntityStore(db).list(EVENTS, order_by="date")
    return _involving(events, person_id)


# ---------------------------------------------------------
# MEMORIES
# ---------------------------------------------------------
@router.post("/memories", response_model=MemoryOut)
def create_memory(
    payload: MemoryCreate,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_session),
):
    store = EntityStore(db)
    memory_id = store.create(MEMORIES, {
        "title": payload.title,
        "date": payload.date,
        "description": payload.description,
        "image_urls": payload.image_urls,
        "people_ids": list(dict.fromkeys(payload.people_ids)),
        "created_by": session.user_id,
    })
    return store.get(MEMORIES, memory_id)


@router.get("/memories", response_model=List[MemoryOut])
def list_memories(
    person_id: Optional[str] = None,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_session),
):
    memories = EntityStore(db).list(MEMORIES, order_by="date")
    return _involving(memories, person_id)
