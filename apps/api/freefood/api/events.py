from typing import Annotated

from fastapi import APIRouter, Depends

from freefood.api.schemas.events import EventCreate, EventOut, EventUpdate, MessageOut
from freefood.store import EventStore, get_event_store

router = APIRouter(prefix="/events", tags=["events"])

Store = Annotated[EventStore, Depends(get_event_store)]


@router.get("", response_model=list[EventOut])
def list_events(store: Store):
    return store.list()


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: str, store: Store):
    return store.get(event_id)


@router.post("", response_model=EventOut, status_code=201)
def create_event(payload: EventCreate, store: Store):
    return store.create(payload.model_dump(exclude_unset=True))


@router.put("/{event_id}", response_model=EventOut)
def update_event(event_id: str, patch: EventUpdate, store: Store):
    return store.update(event_id, patch.model_dump(exclude_unset=True))


@router.delete("/{event_id}", response_model=MessageOut)
def delete_event(event_id: str, store: Store):
    store.delete(event_id)
    return MessageOut(message="Event deleted successfully")
