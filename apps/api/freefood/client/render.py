from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from freefood.client.models import RankedEvent

EMPTY_MESSAGE = "No events found."

DEFAULT_MARKER_COLOR = "#d32f2f"
DIET_MARKER_COLORS = {
    "vegan": "#2e7d32",
    "vegetarian": "#66bb6a",
    "halal": "#1565c0",
    "kosher": "#6a1b9a",
    "gluten-free": "#ef6c00",
    "dairy-free": "#00838f",
}


@dataclass(frozen=True)
class ListRow:
    event_id: str
    title: str
    place: str | None
    diet_type: str | None
    cuisine: str | None
    description: str | None
    photo: str | None
    event_time: str | None
    posted_relative: str | None
    posted_absolute: str | None
    distance_text: str | None
    food_percentage: int


@dataclass(frozen=True)
class MapMarker:
    event_id: str
    lat: float
    lng: float
    title: str
    color: str


@dataclass(frozen=True)
class ListView:
    rows: tuple[ListRow, ...]
    markers: tuple[MapMarker, ...]
    empty_message: str | None = None


def marker_color(diet_type: str | None) -> str:
    if not diet_type:
        return DEFAULT_MARKER_COLOR
    return DIET_MARKER_COLORS.get(diet_type.strip().lower(), DEFAULT_MARKER_COLOR)


def format_absolute(value: datetime | None) -> str | None:
    """``Jan 15, 2024 3:04 PM`` in the viewer's local time."""
    if value is None:
        return None
    local = value.astimezone()
    hour = local.hour % 12 or 12
    return f"{local:%b} {local.day}, {local.year} {hour}:{local:%M} {local:%p}"


def format_relative(value: datetime | None, now: datetime | None = None) -> str | None:
    if value is None:
        return None
    now = now or datetime.now(timezone.utc)
    seconds = int((now - value).total_seconds())
    if seconds < 60:
        return "just now"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes} min ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours} hr ago"
    days = hours // 24
    return "1 day ago" if days == 1 else f"{days} days ago"


def format_distance(miles: float | None) -> str | None:
    if miles is None:
        return None
    if miles < 0.1:
        return "< 0.1 mi"
    return f"{miles:.1f} mi"


def project(ranked: Sequence[RankedEvent], now: datetime | None = None) -> ListView:
    """Map ranked events to list rows and, where located, one map marker each."""
    rows = []
    markers = []
    for item in ranked:
        event = item.event
        rows.append(
            ListRow(
                event_id=event.id,
                title=event.event_name,
                place=event.place_name,
                diet_type=event.diet_type,
                cuisine=event.cuisine,
                description=event.description,
                photo=event.photo,
                event_time=event.event_time,
                posted_relative=format_relative(event.created_at, now),
                posted_absolute=format_absolute(event.created_at),
                distance_text=format_distance(item.distance),
                food_percentage=event.food_percentage,
            )
        )
        if event.location is not None:
            markers.append(
                MapMarker(
                    event_id=event.id,
                    lat=event.location.lat,
                    lng=event.location.lng,
                    title=event.event_name,
                    color=marker_color(event.diet_type),
                )
            )

    return ListView(
        rows=tuple(rows),
        markers=tuple(markers),
        empty_message=None if rows else EMPTY_MESSAGE,
    )
