from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from bazaar.api.deps import get_geocoder
from bazaar.core.rate_limit import geocode_rate_limiter
from bazaar.schemas.listing import GeoPoint
from bazaar.services.geocoding import Geocoder

router = APIRouter(prefix="/v1", tags=["geocode"])


class GeocodeOut(BaseModel):
    match: Optional[GeoPoint] = None


@router.get("/geocode", response_model=GeocodeOut, dependencies=[Depends(geocode_rate_limiter)])
async def geocode(q: str, geocoder: Geocoder = Depends(get_geocoder)) -> GeocodeOut:
    return GeocodeOut(match=await geocoder.lookup(q))
