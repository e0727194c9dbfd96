"""
Per-feature API for schedules. Mounted at /api/components/schedule/.
Stored rows use ScheduleRecord ORM with Pydantic from_attributes.
"""
import datetime as dt
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict

from prayer_engine.prayer.methods import CalculationAttribute

from .export import render_sql
from .service import get_schedule_records, save_schedule


class TargetRequest(BaseModel):
    code: str
    name: Optional[str] = None
    lat: float = 0.0
    lng: float = 0.0


class ScheduleRequest(BaseModel):
    start: dt.date
    end: dt.date
    targets: Optional[List[TargetRequest]] = None  # configured targets when omitted
    timezone: Optional[float] = None
    method: Optional[str] = None
    asr: Optional[str] = None
    high_latitude: Optional[str] = None
    save: bool = False
    include_sql: bool = False


class ScheduleRowResponse(BaseModel):
    """Pydantic view of ScheduleRow / ScheduleRecord."""

    model_config = ConfigDict(from_attributes=True)

    day_order: int
    month: str
    iftar: dt.datetime
    imsak: dt.datetime
    date: dt.date
    source: Optional[str] = None
    city_code: str
    is_current: int = 0


class ScheduleResponse(BaseModel):
    rows: List[ScheduleRowResponse]
    diagnostics: Dict[str, Any]
    saved: int = 0
    sql: Optional[str] = None


def get_router(engine_app) -> Optional[APIRouter]:
    """Return router for schedules; mounted with prefix /api/components/schedule."""
    router = APIRouter(tags=["Schedule"])

    @router.post("/build", response_model=ScheduleResponse)
    def build(request: ScheduleRequest) -> ScheduleResponse:
        """Build rows for the targets over [start, end]; optionally persist them."""
        default = engine_app.attribute
        try:
            attribute = CalculationAttribute(
                method=request.method or default.method,
                asr_method=request.asr if request.asr is not None else default.asr_method,
                high_latitude=request.high_latitude or default.high_latitude,
                offsets=default.offsets,
            )
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

        entries = [t.model_dump() for t in request.targets] if request.targets is not None else None
        targets = engine_app.schedule_targets(entries)
        if not targets:
            raise HTTPException(status_code=422, detail="No schedule targets given or configured")

        composer = engine_app.composer(attribute, request.timezone)
        try:
            rows, diagnostics = composer.build_schedule(targets, request.start, request.end)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

        saved = 0
        if request.save:
            if engine_app.session_factory is None:
                raise HTTPException(status_code=422, detail="Schedule storage is not configured")
            saved = save_schedule(rows, engine_app.session_factory)

        sql = None
        if request.include_sql:
            sql = render_sql(rows, diagnostics, request.start, request.end, composer.timezone, attribute)

        return ScheduleResponse(
            rows=[ScheduleRowResponse(**row._asdict()) for row in rows],
            diagnostics=diagnostics.to_dict(),
            saved=saved,
            sql=sql,
        )

    @router.get("/stored/{city_code}", response_model=List[ScheduleRowResponse])
    def stored(city_code: str) -> List[ScheduleRowResponse]:
        """Persisted rows for one city code, oldest first (ORM serialized via Pydantic)."""
        if engine_app.session_factory is None:
            raise HTTPException(status_code=404, detail="Schedule storage is not configured")
        records = get_schedule_records(city_code, engine_app.session_factory)
        if not records:
            raise HTTPException(status_code=404, detail=f"No stored schedule for {city_code}")
        return [ScheduleRowResponse.model_validate(r) for r in records]

    return router
