"""Derive the displayed event list from the cached collection.

Everything here is a pure function of its arguments: filtering, distance
annotation and sorting never mutate the input events and never touch the
network. ``derive_events`` chains the stages in order.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

from freefood.client.models import Event, Location, RankedEvent

EARTH_RADIUS_MILES = 3959.0

DEFAULT_SEARCH_FIELDS = ("event_name", "place_name", "cuisine", "diet_type", "description")

NO_SELECTION = {"", "all"}


class SortMode(str, Enum):
    TIME_ASC = "time-asc"
    TIME_DESC = "time-desc"
    DISTANCE = "distance"
    NAME = "name"


class DateWindow(str, Enum):
    ALL = "all"
    TODAY = "today"
    THIS_WEEK = "this-week"


@dataclass(frozen=True)
class ViewQuery:
    search: str = ""
    diet_type: str | None = None
    cuisine: str | None = None
    sort_mode: str = SortMode.TIME_DESC.value
    search_fields: tuple[str, ...] = DEFAULT_SEARCH_FIELDS
    date_window: str = DateWindow.ALL.value


def haversine_miles(a: Location, b: Location) -> float:
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlat = lat2 - lat1
    dlng = math.radians(b.lng - a.lng)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_MILES * math.asin(min(1.0, math.sqrt(h)))


def _selection(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip().lower()
    return None if value in NO_SELECTION else value


def _matches(field_value: str | None, selected: str | None) -> bool:
    if selected is None:
        return True
    return field_value is not None and field_value.strip().lower() == selected


def filter_by_category(
    events: Iterable[Event],
    diet_type: str | None = None,
    cuisine: str | None = None,
) -> list[Event]:
    diet, kind = _selection(diet_type), _selection(cuisine)
    return [e for e in events if _matches(e.diet_type, diet) and _matches(e.cuisine, kind)]


def filter_by_date_window(
    events: Iterable[Event],
    window: str = DateWindow.ALL.value,
    now: datetime | None = None,
) -> list[Event]:
    """Keep events posted today, or during the last seven local days for ``this-week``."""
    try:
        window = DateWindow(window)
    except ValueError:
        return list(events)
    if window is DateWindow.ALL:
        return list(events)

    now = (now or datetime.now(timezone.utc)).astimezone()
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    end = start + timedelta(days=1)
    if window is DateWindow.THIS_WEEK:
        start -= timedelta(days=6)
    return [e for e in events if e.created_at is not None and start <= e.created_at < end]


def filter_by_text(
    events: Iterable[Event],
    query: str,
    fields: Sequence[str] = DEFAULT_SEARCH_FIELDS,
) -> list[Event]:
    needle = (query or "").lower()
    if not needle:
        return list(events)

    def hit(event: Event) -> bool:
        for name in fields:
            value = getattr(event, name, None)
            if isinstance(value, str) and needle in value.lower():
                return True
        return False

    return [e for e in events if hit(e)]


def annotate_distance(events: Iterable[Event], user_location: Location | None) -> list[RankedEvent]:
    if user_location is None:
        return [RankedEvent(event) for event in events]
    return [
        RankedEvent(event, haversine_miles(user_location, event.location) if event.location else None)
        for event in events
    ]


def _timestamp(value: datetime) -> float:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def sort_ranked(
    ranked: Sequence[RankedEvent],
    mode: str,
    has_user_location: bool = False,
) -> list[RankedEvent]:
    """Stable sort; missing keys always go last. Unknown modes leave the order alone."""
    try:
        mode = SortMode(mode)
    except ValueError:
        return list(ranked)

    if mode in (SortMode.TIME_ASC, SortMode.TIME_DESC):
        dated = [r for r in ranked if r.event.created_at is not None]
        undated = [r for r in ranked if r.event.created_at is None]
        dated.sort(key=lambda r: _timestamp(r.event.created_at), reverse=mode is SortMode.TIME_DESC)
        return dated + undated

    if mode is SortMode.DISTANCE:
        if not has_user_location:
            return list(ranked)
        near = sorted((r for r in ranked if r.distance is not None), key=lambda r: r.distance)
        return near + [r for r in ranked if r.distance is None]

    return sorted(ranked, key=lambda r: r.event.event_name.casefold())


def derive_events(
    events: Sequence[Event],
    query: ViewQuery,
    user_location: Location | None = None,
    now: datetime | None = None,
) -> list[RankedEvent]:
    selected = filter_by_category(events, query.diet_type, query.cuisine)
    selected = filter_by_date_window(selected, query.date_window, now=now)
    selected = filter_by_text(selected, query.search, query.search_fields)
    ranked = annotate_distance(selected, user_location)
    return sort_ranked(ranked, query.sort_mode, has_user_location=user_location is not None)
