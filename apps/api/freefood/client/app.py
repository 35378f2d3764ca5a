from __future__ import annotations

import asyncio
import base64
import dataclasses
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog

from freefood.client.api import ApiError, EventsApi
from freefood.client.cache import EventCache
from freefood.client.models import Event, Location, RankedEvent
from freefood.client.pipeline import ViewQuery, derive_events
from freefood.client.render import ListView, project
from freefood.client.slider import PercentageSlider, SliderState

logger = structlog.get_logger()

PHOTO_MAX_BYTES = 5 * 1024 * 1024
LOAD_FAILED_MESSAGE = "Could not load events. Please try again later."
OPTIONAL_TEXT_FIELDS = ("place_name", "cuisine", "diet_type", "description", "event_time")


class FormError(ValueError):
    pass


class PhotoTooLargeError(ValueError):
    pass


class View(Protocol):
    def render(self, view: ListView) -> None: ...

    def alert(self, message: str) -> None: ...

    def confirm(self, message: str) -> bool | Awaitable[bool]: ...

    def focus(self, event: Event) -> None: ...

    def show_percentage(self, event_id: str, value: int, saving: bool) -> None: ...


class Geocoder(Protocol):
    async def geocode(self, place_name: str) -> Location | None: ...


@dataclass
class AppState:
    cache: EventCache = field(default_factory=EventCache)
    query: ViewQuery = field(default_factory=ViewQuery)
    user_location: Location | None = None
    geolocation_error: str | None = None
    selected_event_id: str | None = None
    pending_photo: str | None = None
    map_provider_key: str = ""
    load_error: str | None = None
    visible: list[RankedEvent] = field(default_factory=list)


def encode_photo(data: bytes, content_type: str = "image/jpeg", max_bytes: int = PHOTO_MAX_BYTES) -> str:
    """Inline a photo as a data URL, refusing anything over ``max_bytes`` once encoded."""
    encoded = f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"
    if len(encoded) > max_bytes:
        raise PhotoTooLargeError(
            f"Photo is too large ({len(encoded) / 1024 / 1024:.1f} MB encoded, "
            f"limit {max_bytes / 1024 / 1024:.0f} MB)"
        )
    return encoded


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def build_event_payload(form: Mapping[str, Any], photo: str | None = None) -> dict[str, Any]:
    name = _clean(form.get("event_name"))
    if name is None:
        raise FormError("Please enter an event name.")

    payload: dict[str, Any] = {"event_name": name}
    for key in OPTIONAL_TEXT_FIELDS:
        value = _clean(form.get(key))
        if value is not None:
            payload[key] = value

    raw_location = form.get("location")
    if raw_location is None and (form.get("lat") not in (None, "") or form.get("lng") not in (None, "")):
        raw_location = {"lat": form.get("lat"), "lng": form.get("lng")}
    if raw_location is not None:
        location = Location.parse(raw_location)
        if location is None:
            raise FormError("Location needs both a latitude and a longitude.")
        payload["location"] = location.to_json()

    if form.get("food_percentage") not in (None, ""):
        try:
            payload["food_percentage"] = max(0, min(100, int(float(form["food_percentage"]))))
        except (TypeError, ValueError) as exc:
            raise FormError("Food remaining must be a number between 0 and 100.") from exc

    if photo is not None:
        payload["photo"] = photo
    return payload


class FreeFoodClient:
    """Owns the client state and routes UI intents.

    Local intents (search, filters, sort, geolocation) re-run the pipeline
    and re-render. Mutations go through the API; creates and deletes
    reload the cache, percentage saves patch it.
    """

    def __init__(
        self,
        api: EventsApi,
        view: View,
        *,
        geocoder: Geocoder | None = None,
        state: AppState | None = None,
        photo_max_bytes: int = PHOTO_MAX_BYTES,
        debounce_seconds: float | None = None,
    ) -> None:
        self.api = api
        self.view = view
        self.state = state or AppState()
        self._geocoder = geocoder
        self._photo_max_bytes = photo_max_bytes
        self._debounce_seconds = debounce_seconds
        self._sliders: dict[str, PercentageSlider] = {}
        self._tasks: set[asyncio.Task] = set()

    async def start(self) -> None:
        try:
            self.state.map_provider_key = await self.api.get_map_provider_key()
        except ApiError as exc:
            logger.warning("map_config_unavailable", error=exc.message)
        await self.load()

    async def load(self) -> None:
        try:
            await self.state.cache.reload(self.api)
            self.state.load_error = None
        except ApiError as exc:
            logger.error("events_load_failed", error=exc.message)
            self.state.cache.replace([])
            self.state.load_error = LOAD_FAILED_MESSAGE
        self._sync_sliders()
        self.refresh()

    def refresh(self) -> list[RankedEvent]:
        self.state.visible = derive_events(
            self.state.cache.events, self.state.query, self.state.user_location
        )
        view = project(self.state.visible)
        if self.state.load_error and not view.rows:
            view = dataclasses.replace(view, empty_message=self.state.load_error)
        self.view.render(view)
        return self.state.visible

    # Local state changes

    def _set_query(self, **changes) -> list[RankedEvent]:
        self.state.query = dataclasses.replace(self.state.query, **changes)
        return self.refresh()

    def set_search(self, text: str) -> list[RankedEvent]:
        return self._set_query(search=text or "")

    def set_diet_filter(self, diet_type: str | None) -> list[RankedEvent]:
        return self._set_query(diet_type=diet_type)

    def set_cuisine_filter(self, cuisine: str | None) -> list[RankedEvent]:
        return self._set_query(cuisine=cuisine)

    def set_sort_mode(self, mode: str) -> list[RankedEvent]:
        return self._set_query(sort_mode=mode)

    def set_date_window(self, window: str) -> list[RankedEvent]:
        return self._set_query(date_window=window)

    def set_user_location(self, lat: float, lng: float) -> list[RankedEvent]:
        location = Location.parse({"lat": lat, "lng": lng})
        self.state.user_location = location
        self.state.geolocation_error = None if location else "invalid coordinates"
        return self.refresh()

    def location_unavailable(self, reason: str) -> list[RankedEvent]:
        # Permission denied, unavailable, timeout: distance features switch off
        logger.info("geolocation_unavailable", reason=reason)
        self.state.user_location = None
        self.state.geolocation_error = reason
        return self.refresh()

    def focus_event(self, event_id: str) -> Event | None:
        event = self.state.cache.get(event_id)
        if event is None:
            return None
        self.state.selected_event_id = event_id
        self.view.focus(event)
        return event

    def select_photo(self, data: bytes, content_type: str = "image/jpeg") -> str | None:
        try:
            self.state.pending_photo = encode_photo(data, content_type, self._photo_max_bytes)
        except PhotoTooLargeError as exc:
            self.state.pending_photo = None
            self.view.alert(str(exc))
            return None
        return self.state.pending_photo

    def clear_photo(self) -> None:
        self.state.pending_photo = None

    # Mutations

    async def _reload_after_mutation(self) -> None:
        try:
            await self.state.cache.reload(self.api)
            self.state.load_error = None
        except ApiError as exc:
            logger.error("events_reload_failed", error=exc.message)
        self._sync_sliders()
        self.refresh()

    async def submit_event(self, form: Mapping[str, Any]) -> Event | None:
        try:
            payload = build_event_payload(form, self.state.pending_photo)
        except FormError as exc:
            self.view.alert(str(exc))
            return None

        if "location" not in payload and "place_name" in payload and self._geocoder is not None:
            location = await self._geocoder.geocode(payload["place_name"])
            if location is not None:
                payload["location"] = location.to_json()

        try:
            created = await self.api.create_event(payload)
        except ApiError as exc:
            self.view.alert(f"Failed to post event: {exc.message}")
            return None

        logger.info("event_posted", event_id=created.id)
        self.state.pending_photo = None
        await self._reload_after_mutation()
        return created

    async def delete_event(self, event_id: str) -> bool:
        slider = self._sliders.get(event_id)
        if slider is not None:
            slider.cancel()
        try:
            await self.api.delete_event(event_id)
        except ApiError as exc:
            self.view.alert(f"Failed to delete event: {exc.message}")
            return False
        self._forget(event_id)
        await self._reload_after_mutation()
        return True

    def _forget(self, event_id: str) -> None:
        self.state.cache.remove(event_id)
        slider = self._sliders.pop(event_id, None)
        if slider is not None:
            slider.cancel()
        if self.state.selected_event_id == event_id:
            self.state.selected_event_id = None
        self.refresh()

    # Percentage sliders

    def slider(self, event_id: str) -> PercentageSlider:
        slider = self._sliders.get(event_id)
        if slider is not None:
            return slider

        event = self.state.cache.get(event_id)
        if event is None:
            raise KeyError(event_id)

        kwargs = {}
        if self._debounce_seconds is not None:
            kwargs["debounce_seconds"] = self._debounce_seconds
        slider = PercentageSlider(
            event_id,
            event.food_percentage,
            self.api,
            confirm=self._confirm_exhausted,
            on_saved=self._percentage_saved,
            on_deleted=self._slider_deleted,
            on_error=self.view.alert,
            on_display=self.view.show_percentage,
            **kwargs,
        )
        self._sliders[event_id] = slider
        return slider

    def drag_slider(self, event_id: str, value) -> int:
        return self.slider(event_id).drag(value)

    def commit_slider(self, event_id: str, value) -> asyncio.Task | None:
        return self._track(self.slider(event_id).commit(value))

    def _confirm_exhausted(self, event_id: str) -> bool | Awaitable[bool]:
        event = self.state.cache.get(event_id)
        name = event.event_name if event else "this event"
        return self.view.confirm(f"No food left at {name}? This will delete the event.")

    def _percentage_saved(self, updated: Event) -> None:
        self.state.cache.patch(updated.id, food_percentage=updated.food_percentage)
        self.refresh()

    def _slider_deleted(self, event_id: str) -> None:
        self._forget(event_id)
        self._track(asyncio.create_task(self._reload_after_mutation()))

    def _sync_sliders(self) -> None:
        for event_id in list(self._sliders):
            event = self.state.cache.get(event_id)
            if event is None:
                self._sliders.pop(event_id).cancel()
                continue
            slider = self._sliders[event_id]
            if slider.state in (SliderState.IDLE, SliderState.SAVED, SliderState.REVERTED):
                slider.confirmed_value = slider.displayed_value = event.food_percentage

    def _track(self, task: asyncio.Task | None) -> asyncio.Task | None:
        if task is not None:
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        return task

    async def settle(self) -> None:
        """Wait for outstanding slider saves, deletes and reloads."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
