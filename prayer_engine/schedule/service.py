"""
Service layer: save and load generated schedules from DB.
"""
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy import delete, select
from sqlalchemy.orm import sessionmaker

from prayer_engine.core.db import session_scope
from prayer_engine.schedule.composer import ScheduleRow
from prayer_engine.schedule.models import ScheduleRecord, _utc_now


def save_schedule(rows: Iterable[ScheduleRow], session_factory: Optional[sessionmaker] = None) -> int:
    """Replace stored rows for each city code on the dates covered by `rows`. Returns rows written."""
    rows = list(rows)
    dates_by_code: Dict[str, Set[date]] = defaultdict(set)
    for row in rows:
        dates_by_code[row.city_code].add(row.date)

    created = _utc_now()
    with session_scope(session_factory) as session:
        for code, days in dates_by_code.items():
            session.execute(
                delete(ScheduleRecord).where(
                    ScheduleRecord.city_code == code,
                    ScheduleRecord.date.in_(sorted(days)),
                )
            )
        for row in rows:
            session.add(
                ScheduleRecord(
                    day_order=row.day_order,
                    month=row.month,
                    iftar=row.iftar,
                    imsak=row.imsak,
                    date=row.date,
                    is_current=row.is_current,
                    city_code=row.city_code,
                    source=row.source,
                    create_time=created,
                )
            )
    return len(rows)


def get_schedule_records(city_code: str, session_factory: Optional[sessionmaker] = None) -> List[ScheduleRecord]:
    """Stored rows for one city code, oldest date first (for API serialization)."""
    with session_scope(session_factory) as session:
        return list(
            session.execute(
                select(ScheduleRecord)
                .where(ScheduleRecord.city_code == city_code)
                .order_by(ScheduleRecord.date.asc())
            )
            .scalars().all()
        )


def get_schedule(city_code: str, session_factory: Optional[sessionmaker] = None) -> List[ScheduleRow]:
    """Stored rows for one city code as ScheduleRow values."""
    return [_record_to_row(r) for r in get_schedule_records(city_code, session_factory)]


def _record_to_row(r: ScheduleRecord) -> ScheduleRow:
    return ScheduleRow(
        day_order=r.day_order,
        month=r.month,
        iftar=r.iftar,
        imsak=r.imsak,
        date=r.date,
        source=r.source,
        city_code=r.city_code,
        is_current=r.is_current,
    )
