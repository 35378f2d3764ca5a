from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from freefood.api.schemas.events import EventOut
from freefood.services.events_service import prepare_event_patch, prepare_new_event


class EventStore(ABC):
    """CRUD over the hosted ``events`` table.

    Backend failures surface as ``StoreUnavailableError``; unknown ids as
    ``NotFoundError``. Field validation runs before any store I/O.
    """

    @abstractmethod
    def list(self) -> list[EventOut]:
        """Return every event, newest first."""

    @abstractmethod
    def get(self, event_id: str) -> EventOut:
        """Return one event or raise ``NotFoundError``."""

    def create(self, fields: Mapping[str, Any]) -> EventOut:
        return self._insert(prepare_new_event(fields))

    def update(self, event_id: str, fields: Mapping[str, Any]) -> EventOut:
        return self._update(event_id, prepare_event_patch(fields))

    @abstractmethod
    def delete(self, event_id: str) -> None:
        """Delete one event or raise ``NotFoundError``."""

    @abstractmethod
    def _insert(self, row: dict[str, Any]) -> EventOut:
        """Insert an already validated flat row."""

    @abstractmethod
    def _update(self, event_id: str, row: dict[str, Any]) -> EventOut:
        """Apply an already validated flat patch."""
