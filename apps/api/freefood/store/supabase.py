from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import httpx
import structlog
from supabase import Client, PostgrestAPIError

from freefood.api.schemas.events import EventOut
from freefood.services.exceptions import NotFoundError, StoreUnavailableError
from freefood.store.base import EventStore

logger = structlog.get_logger()

# Postgres: invalid_text_representation (e.g. a malformed uuid in eq("id", ...))
INVALID_TEXT_REPRESENTATION = "22P02"


class SupabaseEventStore(EventStore):
    """Event store backed by a hosted Supabase table (flat ``lat``/``lng`` columns)."""

    def __init__(self, client: Client, table: str = "events") -> None:
        self._client = client
        self._table_name = table

    def _table(self):
        return self._client.table(self._table_name)

    @contextmanager
    def _request(self, operation: str) -> Iterator[None]:
        try:
            yield
        except PostgrestAPIError as exc:
            if getattr(exc, "code", None) == INVALID_TEXT_REPRESENTATION:
                raise NotFoundError() from exc
            logger.error("event_store_failed", operation=operation, error=exc.message)
            raise StoreUnavailableError(f"failed to {operation}", details=exc.message) from exc
        except httpx.HTTPError as exc:
            logger.error("event_store_unreachable", operation=operation, error=str(exc))
            raise StoreUnavailableError(f"failed to {operation}", details=str(exc)) from exc

    def list(self) -> list[EventOut]:
        with self._request("list events"):
            response = self._table().select("*").order("created_at", desc=True).execute()
        return [EventOut.model_validate(row) for row in response.data or []]

    def get(self, event_id: str) -> EventOut:
        with self._request("fetch event"):
            response = self._table().select("*").eq("id", event_id).limit(1).execute()
        if not response.data:
            raise NotFoundError()
        return EventOut.model_validate(response.data[0])

    def _insert(self, row: dict[str, Any]) -> EventOut:
        with self._request("create event"):
            response = self._table().insert(row).execute()
        if not response.data:
            raise StoreUnavailableError("failed to create event", details="insert returned no rows")
        created = EventOut.model_validate(response.data[0])
        logger.info("event_created", event_id=created.id)
        return created

    def _update(self, event_id: str, row: dict[str, Any]) -> EventOut:
        if not row:
            return self.get(event_id)
        with self._request("update event"):
            response = self._table().update(row).eq("id", event_id).execute()
        if not response.data:
            raise NotFoundError()
        logger.info("event_updated", event_id=event_id, fields=sorted(row))
        return EventOut.model_validate(response.data[0])

    def delete(self, event_id: str) -> None:
        with self._request("delete event"):
            response = self._table().delete().eq("id", event_id).execute()
        if not response.data:
            raise NotFoundError()
        logger.info("event_deleted", event_id=event_id)
