from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

from freefood.client.models import Event

if TYPE_CHECKING:
    from freefood.client.api import EventsApi


class EventCache:
    """Every event last fetched from the API.

    Creates and deletes are followed by a full ``reload``; only
    ``food_percentage`` saves patch entries in place.
    """

    def __init__(self, events: Iterable[Event] = ()) -> None:
        self._events: list[Event] = list(events)

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events)

    @property
    def events(self) -> list[Event]:
        return list(self._events)

    async def reload(self, api: EventsApi) -> list[Event]:
        self._events = await api.list_events()
        return self.events

    def replace(self, events: Iterable[Event]) -> None:
        self._events = list(events)

    def get(self, event_id: str) -> Event | None:
        return next((e for e in self._events if e.id == event_id), None)

    def patch(self, event_id: str, **fields) -> Event | None:
        for index, event in enumerate(self._events):
            if event.id == event_id:
                self._events[index] = dataclasses.replace(event, **fields)
                return self._events[index]
        return None

    def remove(self, event_id: str) -> bool:
        before = len(self._events)
        self._events = [e for e in self._events if e.id != event_id]
        return len(self._events) != before
