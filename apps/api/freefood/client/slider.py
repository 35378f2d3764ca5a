"""Remaining-food slider with debounced saves and confirmed-value rollback.

Dragging only moves the read-out. A commit of 0 goes through delete
confirmation and never issues an update. Any other commit is debounced;
when the window closes one ``update`` is sent, after any save of the same
event that is still in flight. On failure the read-out falls back to the
last value the server confirmed, never to an unconfirmed drag value.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING

import structlog

from freefood.client.api import ApiError
from freefood.client.models import Event
from freefood.services.events_service import clamp_percentage

if TYPE_CHECKING:
    from freefood.client.api import EventsApi

logger = structlog.get_logger()

DEBOUNCE_SECONDS = 0.5

ConfirmCallback = Callable[[str], "bool | Awaitable[bool]"]


class SliderState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTED = "committed"
    PENDING_SAVE = "pending_save"
    SAVED = "saved"
    REVERTED = "reverted"
    CONFIRM_PENDING = "confirm_pending"
    DELETED = "deleted"


class PercentageSlider:
    def __init__(
        self,
        event_id: str,
        confirmed_value: int,
        api: EventsApi,
        *,
        confirm: ConfirmCallback,
        on_saved: Callable[[Event], None] | None = None,
        on_deleted: Callable[[str], None] | None = None,
        on_error: Callable[[str], None] | None = None,
        on_display: Callable[[str, int, bool], None] | None = None,
        debounce_seconds: float = DEBOUNCE_SECONDS,
    ) -> None:
        self.event_id = event_id
        self.confirmed_value = clamp_percentage(confirmed_value)
        self.displayed_value = self.confirmed_value
        self.state = SliderState.IDLE
        self.saving = False

        self._api = api
        self._confirm = confirm
        self._on_saved = on_saved
        self._on_deleted = on_deleted
        self._on_error = on_error
        self._on_display = on_display
        self._debounce_seconds = debounce_seconds

        self._timer: asyncio.Task | None = None
        self._in_flight: asyncio.Task | None = None

    def _display(self) -> None:
        if self._on_display is not None:
            self._on_display(self.event_id, self.displayed_value, self.saving)

    def _notify_error(self, message: str) -> None:
        if self._on_error is not None:
            self._on_error(message)

    def _revert(self) -> None:
        self.displayed_value = self.confirmed_value
        self.saving = False
        self.state = SliderState.REVERTED
        self._display()

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def _is_latest(self) -> bool:
        return self._timer is None and self._in_flight is asyncio.current_task()

    def drag(self, value) -> int:
        if self.state is SliderState.DELETED:
            return self.displayed_value
        self.displayed_value = clamp_percentage(value)
        self.state = SliderState.DRAGGING
        self._display()
        return self.displayed_value

    def commit(self, value) -> asyncio.Task | None:
        """Finalize a drag. Must be called from a running event loop."""
        if self.state is SliderState.DELETED:
            return None

        value = clamp_percentage(value)
        self.displayed_value = value
        self.state = SliderState.COMMITTED
        self._cancel_timer()

        if value == 0:
            self.state = SliderState.CONFIRM_PENDING
            self._display()
            return asyncio.create_task(self._confirm_delete())

        self.state = SliderState.PENDING_SAVE
        self.saving = True
        self._display()
        self._timer = asyncio.create_task(self._debounced_save(value))
        return self._timer

    async def _debounced_save(self, value: int) -> None:
        await asyncio.sleep(self._debounce_seconds)

        # Past the window: newer commits queue behind this save instead of cancelling it
        if self._timer is asyncio.current_task():
            self._timer = None
        previous = self._in_flight
        self._in_flight = asyncio.current_task()
        try:
            if previous is not None and not previous.done():
                await asyncio.wait({previous})
            await self._save(value)
        finally:
            if self._in_flight is asyncio.current_task():
                self._in_flight = None

    async def _save(self, value: int) -> None:
        try:
            updated = await self._api.update_event(self.event_id, {"food_percentage": value})
        except ApiError as exc:
            logger.warning(
                "food_percentage_save_failed",
                event_id=self.event_id,
                value=value,
                confirmed=self.confirmed_value,
                error=exc.message,
            )
            if self._is_latest():
                self._revert()
            self._notify_error(f"Failed to update food percentage: {exc.message}")
            return

        self.confirmed_value = updated.food_percentage
        logger.info("food_percentage_saved", event_id=self.event_id, value=self.confirmed_value)
        if self._on_saved is not None:
            self._on_saved(updated)

        if self._is_latest() and self.state is SliderState.PENDING_SAVE:
            self.displayed_value = self.confirmed_value
            self.saving = False
            self.state = SliderState.SAVED
            self._display()

    async def _confirm_delete(self) -> bool:
        answer = self._confirm(self.event_id)
        if inspect.isawaitable(answer):
            answer = await answer

        # Baseline must include any save already sent
        if self._in_flight is not None and not self._in_flight.done():
            await asyncio.wait({self._in_flight})

        if not answer:
            self._revert()
            return False

        try:
            await self._api.delete_event(self.event_id)
        except ApiError as exc:
            logger.warning("event_delete_failed", event_id=self.event_id, error=exc.message)
            self._revert()
            self._notify_error(f"Failed to delete event: {exc.message}")
            return False

        self.state = SliderState.DELETED
        self.saving = False
        logger.info("event_deleted_from_slider", event_id=self.event_id)
        if self._on_deleted is not None:
            self._on_deleted(self.event_id)
        return True

    def cancel(self) -> None:
        """Drop a pending debounced save; a save already sent is left to finish."""
        if self._timer is not None and not self._timer.done():
            logger.info("food_percentage_save_cancelled", event_id=self.event_id)
        self._cancel_timer()
        if self._in_flight is None and self.state is SliderState.PENDING_SAVE:
            self._revert()

    async def wait_idle(self) -> None:
        """Wait for any pending or in-flight save to settle."""
        while True:
            pending = {t for t in (self._timer, self._in_flight) if t is not None and not t.done()}
            if not pending:
                return
            await asyncio.wait(pending)
