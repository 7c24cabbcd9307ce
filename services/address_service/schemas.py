from typing import List, Optional

from pydantic import BaseModel


class AddressLookupRequest(BaseModel):
    postcode: Optional[str] = None


class Address(BaseModel):
    formatted_address: str
    address_line1: str
    city: str
    county: str
    postcode: str
    place_id: Optional[str] = None


class AddressLookupResponse(BaseModel):
    addresses: List[Address]
