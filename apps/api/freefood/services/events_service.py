from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from freefood.services.exceptions import ValidationError

DEFAULT_FOOD_PERCENTAGE = 100

# Columns a client may write; id and created_at are owned by the store.
TEXT_FIELDS = ("place_name", "cuisine", "diet_type", "description", "photo", "event_time")


def clamp_percentage(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("food_percentage must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError("food_percentage must be a number") from exc
    if math.isnan(number):
        raise ValidationError("food_percentage must be a number")
    return int(max(0, min(100, round(number))))


def _finite(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"location.{name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"location.{name} must be a number") from exc
    if not math.isfinite(number):
        raise ValidationError(f"location.{name} must be finite")
    return number


def split_location(location: Any) -> tuple[float | None, float | None]:
    """Flatten a ``{lat, lng}`` mapping (or model) into a column pair.

    Both components must be present, or neither. ``None`` clears both.
    """
    if location is None:
        return None, None
    if not isinstance(location, Mapping):
        location = {"lat": getattr(location, "lat", None), "lng": getattr(location, "lng", None)}

    lat = location.get("lat")
    lng = location.get("lng")
    if lat is None and lng is None:
        return None, None
    if lat is None or lng is None:
        raise ValidationError("location requires both lat and lng")
    return _finite(lat, "lat"), _finite(lng, "lng")


def _clean_name(value: Any) -> str:
    name = value.strip() if isinstance(value, str) else ""
    if not name:
        raise ValidationError("event_name is required", required=["event_name"])
    return name


def prepare_new_event(fields: Mapping[str, Any]) -> dict[str, Any]:
    data: dict[str, Any] = {"event_name": _clean_name(fields.get("event_name"))}
    data["lat"], data["lng"] = split_location(fields.get("location"))

    for key in TEXT_FIELDS:
        data[key] = fields.get(key)

    percentage = fields.get("food_percentage")
    data["food_percentage"] = (
        DEFAULT_FOOD_PERCENTAGE if percentage is None else clamp_percentage(percentage)
    )
    return data


def prepare_event_patch(fields: Mapping[str, Any]) -> dict[str, Any]:
    data: dict[str, Any] = {}
    if "event_name" in fields:
        data["event_name"] = _clean_name(fields["event_name"])
    if "location" in fields:
        data["lat"], data["lng"] = split_location(fields["location"])
    for key in TEXT_FIELDS:
        if key in fields:
            data[key] = fields[key]
    if "food_percentage" in fields:
        data["food_percentage"] = clamp_percentage(fields["food_percentage"])
    return data
