import logging
from typing import Any, List, Mapping, Optional

import httpx

from bazaar.core.errors import GeocodingError
from bazaar.schemas.listing import GeoPoint

logger = logging.getLogger(__name__)

LOCALITY_KEYS = ("city", "town", "village", "hamlet", "suburb")


def _label(candidate: Mapping[str, Any]) -> Optional[str]:
    address = candidate.get("address")
    if isinstance(address, Mapping):
        city = next((address[key] for key in LOCALITY_KEYS if address.get(key)), None)
        parts = [part for part in (city, address.get("state")) if part]
        if parts:
            return ", ".join(parts)
    return candidate.get("display_name")


class Geocoder:
    """Resolve a ZIP code or place name into a search center."""

    def __init__(
        self,
        url: str,
        user_agent: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.url = url
        self.user_agent = user_agent
        self.timeout = timeout
        self._client = client

    def _client_or_default(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
            self._client = httpx.AsyncClient(headers=headers, timeout=self.timeout)
        return self._client

    async def _candidates(self, place: str) -> List[Mapping[str, Any]]:
        params = {"format": "json", "q": place, "limit": 1, "addressdetails": 1}
        try:
            response = await self._client_or_default().get(self.url, params=params)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise GeocodingError(f"geocoding failed for {place!r}") from exc
        if not isinstance(payload, list):
            raise GeocodingError(f"unexpected geocoding payload for {place!r}")
        return [item for item in payload if isinstance(item, Mapping)]

    async def lookup(self, place: Optional[str]) -> Optional[GeoPoint]:
        place = (place or "").strip()
        if not place:
            return None
        try:
            candidates = await self._candidates(place)
        except GeocodingError:
            logger.warning("Geocoding unavailable for %r", place, exc_info=True)
            return None
        for candidate in candidates:
            try:
                return GeoPoint(lat=float(candidate["lat"]), lon=float(candidate["lon"]), label=_label(candidate))
            except (KeyError, TypeError, ValueError):
                continue
        logger.info("No geocoding match for %r", place)
        return None

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
