"""
SQLAlchemy model for generated schedules: one row per city code per date.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, Integer, String

from prayer_engine.core.db import ScheduleBase


def _utc_now() -> datetime:
    """UTC now as naive datetime for DateTime(timezone=False) columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ScheduleRecord(ScheduleBase):
    """iftar = maghrib, imsak = fajr - 10 minutes; source is "fixed" or "computed"."""
    __tablename__ = "ramadan_schedule"

    id = Column(Integer, primary_key=True, autoincrement=True)
    day_order = Column(Integer, nullable=False)
    month = Column(String(32), nullable=False)
    iftar = Column(DateTime(timezone=False), nullable=False)
    imsak = Column(DateTime(timezone=False), nullable=False)
    date = Column(Date, nullable=False, index=True)
    is_current = Column(Integer, default=0, nullable=False)
    city_code = Column(String(64), nullable=False, index=True)
    source = Column(String(16), nullable=True)
    create_time = Column(DateTime(timezone=False), default=_utc_now, nullable=False)
