import re
from typing import Optional

import httpx
import structlog

from shared.config import settings
from shared.errors import (
    InvalidRequestError,
    NotFoundError,
    ServiceUnavailableError,
    UpstreamServiceError,
)
from shared.observability import storefront_address_lookup_total
from shared.validation import format_uk_postcode, validate_uk_postcode
from .geocoding import GoogleMapsClient
from .schemas import Address

logger = structlog.get_logger(__name__)

MAX_ADDRESSES = 20
NO_HOUSE_NUMBER = 999999

_HOUSE_NUMBER = re.compile(r"^\d+")


def _component(components: list[dict], *types: str) -> str:
    for comp in components:
        if any(t in comp.get("types", []) for t in types):
            return comp.get("long_name", "")
    return ""


def parse_address_components(components: list[dict], postcode: str) -> Optional[Address]:
    """Builds an address from Google address components; None when neither street nor town is present."""
    street_number = _component(components, "street_number")
    route = _component(components, "route")
    city = _component(components, "postal_town", "locality", "sublocality")
    county = _component(components, "administrative_area_level_2")

    address_line1 = f"{street_number} {route}".strip()
    if not address_line1 and not city:
        return None

    formatted = ", ".join(part for part in (address_line1, city, county, postcode) if part)
    return Address(
        formatted_address=formatted,
        address_line1=address_line1 or city,
        city=city,
        county=county,
        postcode=postcode,
    )


def address_from_place(place: dict, postcode: str) -> Optional[Address]:
    if place.get("address_components"):
        address = parse_address_components(place["address_components"], postcode)
        if address is not None:
            address.place_id = place.get("place_id")
        return address

    # No components: fall back to the free-text address
    text = place.get("formatted_address") or place.get("vicinity") or place.get("name")
    if not text:
        return None

    parts = [p.strip() for p in text.split(",")]
    return Address(
        formatted_address=text,
        address_line1=parts[0] or text,
        city=parts[1] if len(parts) > 1 else "",
        county="",
        postcode=postcode,
        place_id=place.get("place_id"),
    )


def house_number(address: Address) -> int:
    match = _HOUSE_NUMBER.match(address.address_line1)
    return int(match.group(0)) if match else NO_HOUSE_NUMBER


def dedupe_and_sort(addresses: list[Address]) -> list[Address]:
    seen = set()
    unique = []
    for address in addresses:
        if address.address_line1 in seen:
            continue
        seen.add(address.address_line1)
        unique.append(address)

    return sorted(unique, key=house_number)[:MAX_ADDRESSES]


class AddressService:

    @staticmethod
    async def lookup(client: GoogleMapsClient, postcode) -> list[Address]:
        if not settings.GOOGLE_PLACES_API_KEY:
            logger.error("address_lookup_not_configured")
            raise ServiceUnavailableError("Address lookup service is not configured")

        if not postcode or not isinstance(postcode, str):
            raise InvalidRequestError("Postcode is required")
        if not validate_uk_postcode(postcode):
            raise InvalidRequestError("Invalid UK postcode format. Expected format: SW1A 1AA")

        formatted = format_uk_postcode(postcode)
        try:
            addresses = await AddressService._lookup(client, formatted)
        except (httpx.HTTPError, ValueError, KeyError) as e:
            # transport failures, non-JSON bodies and results missing geometry
            storefront_address_lookup_total.labels(outcome="error").inc()
            logger.error("address_lookup_failed", postcode=formatted, error=str(e))
            raise UpstreamServiceError(
                "Failed to lookup address. Please try again or enter address manually."
            ) from e
        except NotFoundError:
            storefront_address_lookup_total.labels(outcome="not_found").inc()
            raise
        except UpstreamServiceError:
            storefront_address_lookup_total.labels(outcome="error").inc()
            raise

        storefront_address_lookup_total.labels(outcome="found").inc()
        return addresses

    @staticmethod
    async def _lookup(client: GoogleMapsClient, postcode: str) -> list[Address]:
        # Step 1: postcode -> coordinates
        geocode = await client.geocode_postcode(postcode)
        results = geocode.get("results") or []
        if geocode.get("status") != "OK" or not results:
            if geocode.get("status") == "ZERO_RESULTS":
                raise NotFoundError("Postcode not found. Please check and try again.")
            logger.error("geocoding_error", status=geocode.get("status"), message=geocode.get("error_message"))
            raise UpstreamServiceError("Unable to lookup postcode. Please enter address manually.")

        location = results[0]["geometry"]["location"]

        # Step 2: premises around the coordinates
        places = await client.nearby_premises(location["lat"], location["lng"])
        if places.get("status") not in ("OK", "ZERO_RESULTS"):
            logger.error("places_error", status=places.get("status"), message=places.get("error_message"))
            raise UpstreamServiceError(
                "Unable to find addresses for this postcode. Please enter address manually."
            )

        place_results = places.get("results") or []
        if not place_results:
            fallback = parse_address_components(results[0].get("address_components", []), postcode)
            if fallback is None:
                raise NotFoundError(
                    "No specific addresses found for this postcode. Please enter address manually."
                )
            return [fallback]

        # Step 3: map, drop blanks, dedupe and order by house number
        candidates = [address_from_place(place, postcode) for place in place_results]
        addresses = dedupe_and_sort([a for a in candidates if a is not None and a.address_line1])
        if not addresses:
            raise NotFoundError("No addresses found for this postcode. Please enter address manually.")
        return addresses
