"""
Per-feature API for the location dataset. Mounted at /api/components/locations/.
"""
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from .base import LocationRecord


class LocationResponse(BaseModel):
    id: int
    name: str
    country_code: Optional[str] = None
    country_name: Optional[str] = None
    latitude: float
    longitude: float
    has_fixed_times: bool
    depends_on_id: Optional[int] = None
    fixed_time_source: Optional[int] = None

    @classmethod
    def from_record(cls, record: LocationRecord) -> "LocationResponse":
        data = record._asdict()
        data["fixed_time_source"] = record.depends_on_id if record.depends_on_id is not None else record.id
        return cls(**data)


def get_router(engine_app) -> Optional[APIRouter]:
    """Return router for locations; mounted with prefix /api/components/locations."""
    router = APIRouter(tags=["Locations"])
    resolver = engine_app.resolver

    @router.get("/search", response_model=List[LocationResponse])
    def search(q: str, limit: int = Query(20, ge=1, le=500)) -> List[LocationResponse]:
        """Case-insensitive name prefix search, dataset order."""
        return [LocationResponse.from_record(r) for r in resolver.search(q, limit=limit)]

    @router.get("/nearest", response_model=LocationResponse)
    def nearest(lat: float = Query(..., ge=-90, le=90), lng: float = Query(..., ge=-180, le=180)) -> LocationResponse:
        record = resolver.find_nearest(lat, lng)
        if record is None:
            raise HTTPException(status_code=404, detail="Location dataset is empty")
        return LocationResponse.from_record(record)

    @router.get("/geocode", response_model=LocationResponse)
    def geocode(country: str, name: str) -> LocationResponse:
        record = resolver.geocode(country, name)
        if record is None:
            raise HTTPException(status_code=404, detail=f"No location {name!r} in {country}")
        return LocationResponse.from_record(record)

    return router
