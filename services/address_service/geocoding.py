from typing import Optional

import httpx

from shared.config import settings

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
NEARBY_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"

NEARBY_RADIUS_METRES = 150


class GoogleMapsClient:
    """Geocoding and Places nearby-search calls used by the postcode lookup."""

    def __init__(self, api_key: str, transport: Optional[httpx.AsyncBaseTransport] = None, timeout: float = 10.0):
        self.api_key = api_key
        self.transport = transport
        self.timeout = timeout

    async def _get(self, url: str, params: dict) -> dict:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            resp = await client.get(url, params={**params, "key": self.api_key})
            resp.raise_for_status()
            return resp.json()

    async def geocode_postcode(self, postcode: str) -> dict:
        return await self._get(
            GEOCODE_URL,
            {"address": postcode, "region": "uk", "components": "country:GB"},
        )

    async def nearby_premises(self, lat: float, lng: float) -> dict:
        return await self._get(
            NEARBY_SEARCH_URL,
            {"location": f"{lat},{lng}", "radius": NEARBY_RADIUS_METRES, "type": "premise"},
        )


def get_maps_client() -> GoogleMapsClient:
    return GoogleMapsClient(settings.GOOGLE_PLACES_API_KEY or "")
