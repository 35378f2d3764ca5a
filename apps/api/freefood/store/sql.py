from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from freefood.api.schemas.events import EventOut
from freefood.models import Event
from freefood.services.exceptions import NotFoundError, StoreUnavailableError, ValidationError
from freefood.store.base import EventStore

logger = structlog.get_logger()


def _parse_id(event_id: Any) -> uuid.UUID:
    if isinstance(event_id, uuid.UUID):
        return event_id
    try:
        return uuid.UUID(str(event_id))
    except ValueError as exc:
        raise NotFoundError() from exc


class SqlEventStore(EventStore):
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        db: Session = self._session_factory()
        try:
            yield db
        except IntegrityError as exc:
            db.rollback()
            logger.warning("event_store_constraint_violation", operation=operation, error=str(exc.orig))
            raise ValidationError("event violates table constraints") from exc
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("event_store_failed", operation=operation, error=str(exc))
            raise StoreUnavailableError(f"failed to {operation}", details=str(exc)) from exc
        finally:
            db.close()

    def _load(self, db: Session, event_id: Any) -> Event:
        event = db.get(Event, _parse_id(event_id))
        if event is None:
            raise NotFoundError()
        return event

    def list(self) -> list[EventOut]:
        with self._session("list events") as db:
            events = db.scalars(select(Event).order_by(Event.created_at.desc())).all()
            return [EventOut.model_validate(event) for event in events]

    def get(self, event_id: str) -> EventOut:
        with self._session("fetch event") as db:
            return EventOut.model_validate(self._load(db, event_id))

    def _insert(self, row: dict[str, Any]) -> EventOut:
        with self._session("create event") as db:
            event = Event(**row)
            db.add(event)
            db.commit()
            db.refresh(event)
            logger.info("event_created", event_id=str(event.id))
            return EventOut.model_validate(event)

    def _update(self, event_id: str, row: dict[str, Any]) -> EventOut:
        with self._session("update event") as db:
            event = self._load(db, event_id)
            for key, value in row.items():
                setattr(event, key, value)
            db.add(event)
            db.commit()
            db.refresh(event)
            logger.info("event_updated", event_id=str(event.id), fields=sorted(row))
            return EventOut.model_validate(event)

    def delete(self, event_id: str) -> None:
        with self._session("delete event") as db:
            event = self._load(db, event_id)
            deleted_id = str(event.id)
            db.delete(event)
            db.commit()
            logger.info("event_deleted", event_id=deleted_id)
