from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx
import structlog

from freefood.client.models import Event

logger = structlog.get_logger()

DEFAULT_TIMEOUT_SECONDS = 10.0


class ApiError(Exception):
    def __init__(self, message: str, status_code: int | None = None, retryable: bool = False) -> None:
        self.message = message
        self.status_code = status_code
        self.retryable = retryable
        super().__init__(message)


class NetworkError(ApiError):
    """The request never produced a response (connection failure or timeout)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=None, retryable=True)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"HTTP {response.status_code}"


class EventsApi:
    """Async client for the ``/api`` REST surface."""

    def __init__(
        self,
        base_url: str = "",
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> EventsApi:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("api_timeout", method=method, path=path, timeout=self.timeout)
            raise NetworkError(f"request timed out after {self.timeout:g}s") from exc
        except httpx.RequestError as exc:
            logger.warning("api_unreachable", method=method, path=path, error=str(exc))
            raise NetworkError(f"network error: {exc}") from exc

        if response.is_error:
            message = _error_message(response)
            logger.warning("api_error", method=method, path=path, status=response.status_code, error=message)
            raise ApiError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise ApiError("invalid JSON in response", status_code=response.status_code) from exc

    async def list_events(self) -> list[Event]:
        data = await self._request("GET", "/api/events")
        if not isinstance(data, list):
            raise ApiError("expected a list of events")
        return [Event.from_json(item) for item in data]

    async def get_event(self, event_id: str) -> Event:
        return Event.from_json(await self._request("GET", f"/api/events/{event_id}"))

    async def create_event(self, payload: Mapping[str, Any]) -> Event:
        return Event.from_json(await self._request("POST", "/api/events", json=dict(payload)))

    async def update_event(self, event_id: str, fields: Mapping[str, Any]) -> Event:
        return Event.from_json(await self._request("PUT", f"/api/events/{event_id}", json=dict(fields)))

    async def delete_event(self, event_id: str) -> None:
        await self._request("DELETE", f"/api/events/{event_id}")

    async def get_map_provider_key(self) -> str:
        data = await self._request("GET", "/api/config")
        return str(data.get("mapProviderApiKey") or "")

    async def health(self) -> dict:
        return await self._request("GET", "/api/health")
