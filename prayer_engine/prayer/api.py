"""
Per-feature API for prayer times. Mounted at /api/components/prayer/.
"""
import datetime as dt
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from prayer_engine.locations.resolver import LocationResolver

from .methods import METHOD_PARAMS, CalculationAttribute
from .service import PrayerTimeService


class PrayerTimesResponse(BaseModel):
    location: str
    latitude: float
    longitude: float
    date: dt.date
    source: str
    times: Dict[str, str]


class MethodResponse(BaseModel):
    method: str
    fajr_angle: float
    maghrib_is_minutes: bool
    maghrib_value: float
    isha_is_minutes: bool
    isha_value: float


def get_router(engine_app) -> Optional[APIRouter]:
    """Return router for prayer times; mounted with prefix /api/components/prayer."""
    router = APIRouter(tags=["Prayer Times"])

    @router.get("/methods", response_model=List[MethodResponse])
    def list_methods() -> List[MethodResponse]:
        return [
            MethodResponse(
                method=method.value,
                fajr_angle=params.fajr_angle,
                maghrib_is_minutes=bool(params.maghrib_is_minutes),
                maghrib_value=params.maghrib_value,
                isha_is_minutes=bool(params.isha_is_minutes),
                isha_value=params.isha_value,
            )
            for method, params in METHOD_PARAMS.items()
        ]

    @router.get("/times", response_model=PrayerTimesResponse)
    def get_times(
        location: Optional[str] = Query(None, description="Location name prefix"),
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        day: Optional[dt.date] = Query(None, alias="date"),
        timezone: Optional[float] = None,
        method: Optional[str] = None,
        asr: Optional[str] = None,
        high_latitude: Optional[str] = None,
    ) -> PrayerTimesResponse:
        """Times for a named location (stored or computed) or for raw coordinates (computed)."""
        day = day or dt.date.today()
        timezone = timezone if timezone is not None else engine_app.timezone
        try:
            attribute = _attribute_from_query(engine_app.attribute, method, asr, high_latitude)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

        if location:
            record = engine_app.resolver.resolve(location, lat or 0.0, lng or 0.0)
            if record is None:
                raise HTTPException(status_code=404, detail=f"Location not found: {location}")
        elif lat is not None and lng is not None:
            record = LocationResolver.ad_hoc(f"{lat},{lng}", lat, lng)
        else:
            raise HTTPException(status_code=422, detail="Provide a location name or lat and lng")

        service = PrayerTimeService(engine_app.store, engine_app.calculator_for(attribute))
        source = service.source_for(record)
        try:
            result = service.get_prayer_times(record, day, timezone)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        if result is None:
            raise HTTPException(status_code=422, detail=f"Prayer times unavailable for {record.name} on {day}")

        return PrayerTimesResponse(
            location=record.name,
            latitude=record.latitude,
            longitude=record.longitude,
            date=day,
            source=source,
            times=result.as_strings(),
        )

    return router


def _attribute_from_query(default: CalculationAttribute, method, asr, high_latitude) -> CalculationAttribute:
    if method is None and asr is None and high_latitude is None:
        return default
    return CalculationAttribute(
        method=method if method is not None else default.method,
        asr_method=asr if asr is not None else default.asr_method,
        high_latitude=high_latitude if high_latitude is not None else default.high_latitude,
        offsets=default.offsets,
    )
