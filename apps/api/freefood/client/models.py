from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import structlog

logger = structlog.get_logger()


def _number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def parse_timestamp(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.warning("invalid_timestamp", value=value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Location:
    lat: float
    lng: float

    @classmethod
    def parse(cls, raw: Any) -> Location | None:
        """Return a location only when both components are finite numbers."""
        if isinstance(raw, Location):
            return raw
        if not isinstance(raw, Mapping):
            return None
        lat, lng = _number(raw.get("lat")), _number(raw.get("lng"))
        if lat is None or lng is None:
            return None
        return cls(lat=lat, lng=lng)

    def to_json(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class Event:
    id: str
    event_name: str
    place_name: str | None = None
    location: Location | None = None
    cuisine: str | None = None
    diet_type: str | None = None
    description: str | None = None
    photo: str | None = None
    event_time: str | None = None
    created_at: datetime | None = None
    food_percentage: int = 100

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> Event:
        percentage = _number(data.get("food_percentage"))
        return cls(
            id=str(data["id"]),
            event_name=str(data.get("event_name") or ""),
            place_name=data.get("place_name"),
            location=Location.parse(data.get("location")),
            cuisine=data.get("cuisine"),
            diet_type=data.get("diet_type"),
            description=data.get("description"),
            photo=data.get("photo"),
            event_time=data.get("event_time"),
            created_at=parse_timestamp(data.get("created_at")),
            food_percentage=100 if percentage is None else int(max(0, min(100, round(percentage)))),
        )


@dataclass(frozen=True)
class RankedEvent:
    """An event plus its per-session distance from the user, in miles."""

    event: Event
    distance: float | None = None

    @property
    def id(self) -> str:
        return self.event.id
