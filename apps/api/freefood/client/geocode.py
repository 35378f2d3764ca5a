from __future__ import annotations

import httpx
import structlog

from freefood.client.models import Location

logger = structlog.get_logger()

NOMINATIM_BASE_URL = "https://nominatim.openstreetmap.org/search"
DEFAULT_USER_AGENT = "FreeFoodFinder/1.0"
DEFAULT_TIMEOUT_S = 5.0


class NominatimGeocoder:
    """Resolve a free-text place name to coordinates via OSM Nominatim.

    Failures are logged and reported as ``None``; posting an event never
    depends on geocoding.
    """

    def __init__(
        self,
        *,
        base_url: str = NOMINATIM_BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT_S,
        viewbox: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._viewbox = viewbox
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": user_agent},
            transport=transport,
        )

    async def __aenter__(self) -> NominatimGeocoder:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def geocode(self, place_name: str) -> Location | None:
        query = (place_name or "").strip()
        if not query:
            return None

        params = {"q": query, "format": "json", "limit": 1}
        if self._viewbox:
            params["viewbox"] = self._viewbox
            params["bounded"] = 1

        try:
            response = await self._client.get(self._base_url, params=params)
            response.raise_for_status()
            results = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("geocoding_failed", query=query, error=str(exc))
            return None

        if not isinstance(results, list) or not results:
            logger.info("geocoding_no_results", query=query)
            return None

        location = Location.parse({"lat": results[0].get("lat"), "lng": results[0].get("lon")})
        if location is None:
            logger.warning("geocoding_malformed_result", query=query)
        return location
