from fastapi import APIRouter, Depends

from .geocoding import GoogleMapsClient, get_maps_client
from .schemas import AddressLookupRequest, AddressLookupResponse
from .service import AddressService

router = APIRouter(prefix="/address", tags=["Address"])


@router.post("/lookup", response_model=AddressLookupResponse, response_model_exclude_none=True)
async def lookup_address(
    payload: AddressLookupRequest,
    client: GoogleMapsClient = Depends(get_maps_client),
):
    addresses = await AddressService.lookup(client, payload.postcode)
    return {"addresses": addresses}
