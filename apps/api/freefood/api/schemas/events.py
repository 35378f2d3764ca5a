from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from freefood.core.config import settings
from freefood.services.events_service import clamp_percentage
from freefood.services.exceptions import ServiceError


class SchemaBase(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore")


class Location(SchemaBase):
    lat: float = Field(ge=-90, le=90, allow_inf_nan=False)
    lng: float = Field(ge=-180, le=180, allow_inf_nan=False)

    @model_validator(mode="before")
    @classmethod
    def _require_pair(cls, data):
        if isinstance(data, dict):
            if (data.get("lat") is None) != (data.get("lng") is None):
                raise ValueError("location requires both lat and lng")
        return data


class EventFieldsMixin(BaseModel):
    @field_validator("event_name", mode="after", check_fields=False)
    @classmethod
    def _non_blank_name(cls, value: str | None) -> str | None:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("event_name must not be blank")
        return value

    @field_validator("photo", mode="after", check_fields=False)
    @classmethod
    def _bounded_photo(cls, value: str | None) -> str | None:
        if value is not None and len(value) > settings.photo_max_bytes:
            raise ValueError(f"photo exceeds max size of {settings.photo_max_bytes} bytes")
        return value

    @field_validator("food_percentage", mode="before", check_fields=False)
    @classmethod
    def _clamp_percentage(cls, value):
        if value is None:
            return value
        try:
            return clamp_percentage(value)
        except ServiceError as exc:
            raise ValueError(exc.message) from exc


class EventCreate(EventFieldsMixin, SchemaBase):
    event_name: str = Field(max_length=200)
    place_name: str | None = Field(default=None, max_length=300)
    location: Location | None = None
    cuisine: str | None = Field(default=None, max_length=100)
    diet_type: str | None = Field(default=None, max_length=100)
    description: str | None = None
    photo: str | None = None
    event_time: str | None = Field(default=None, max_length=100)
    food_percentage: int | None = None


class EventUpdate(EventFieldsMixin, SchemaBase):
    event_name: str | None = Field(default=None, max_length=200)
    place_name: str | None = Field(default=None, max_length=300)
    location: Location | None = None
    cuisine: str | None = Field(default=None, max_length=100)
    diet_type: str | None = Field(default=None, max_length=100)
    description: str | None = None
    photo: str | None = None
    event_time: str | None = Field(default=None, max_length=100)
    food_percentage: int | None = None

    @model_validator(mode="after")
    def _no_null_required(self):
        if "event_name" in self.model_fields_set and self.event_name is None:
            raise ValueError("event_name cannot be cleared")
        if "food_percentage" in self.model_fields_set and self.food_percentage is None:
            raise ValueError("food_percentage cannot be cleared")
        return self


class EventOut(SchemaBase):
    id: str
    event_name: str
    place_name: str | None = None
    location: Location | None = None
    cuisine: str | None = None
    diet_type: str | None = None
    description: str | None = None
    photo: str | None = None
    event_time: str | None = None
    food_percentage: int = 100
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def _nest_location(cls, data: Any):
        if not isinstance(data, dict):
            data = {
                name: getattr(data, name)
                for name in (*cls.model_fields, "lat", "lng")
                if hasattr(data, name)
            }
        else:
            data = dict(data)
        if "location" not in data or data["location"] is None:
            lat, lng = data.pop("lat", None), data.pop("lng", None)
            data["location"] = None if lat is None or lng is None else {"lat": lat, "lng": lng}
        if data.get("id") is not None:
            data["id"] = str(data["id"])
        return data

    @field_validator("created_at", "updated_at", mode="after")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        # SQLite hands timestamps back without an offset
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class MessageOut(SchemaBase):
    message: str


class HealthOut(SchemaBase):
    status: str
    message: str


class ConfigOut(SchemaBase):
    model_config = ConfigDict(populate_by_name=True)

    map_provider_api_key: str = Field(alias="mapProviderApiKey")
