"""
SQLAlchemy-backed location dataset and fixed-time store over the reference DB
(tables country, location, prayer_time; see prayer_engine.core.models).
"""
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from prayer_engine.core.db import session_scope
from prayer_engine.core.models import Country, Location, PrayerTime

from .base import FixedTimes, FixedTimeStore, LocationDataset, LocationRecord


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_location(location: Location, country: Country) -> LocationRecord:
    return LocationRecord(
        id=location.id,
        name=location.name,
        country_code=country.code if country else "",
        country_name=country.name if country else "",
        latitude=location.latitude,
        longitude=location.longitude,
        has_fixed_times=bool(location.has_fixed_prayer_time),
        depends_on_id=location.prayer_dependent_id,
    )


class SqlLocationDataset(LocationDataset):
    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory

    def _base_query(self):
        return select(Location, Country).join(Country, Country.id == Location.country_id)

    def search_by_prefix(self, prefix: str, country_code: Optional[str] = None, limit: Optional[int] = None) -> List[LocationRecord]:
        stmt = self._base_query().where(Location.name.ilike(f"{_escape_like(prefix or '')}%", escape="\\"))
        if country_code:
            stmt = stmt.where(func.lower(Country.code) == country_code.lower())
        stmt = stmt.order_by(Location.id)
        if limit is not None:
            stmt = stmt.limit(limit)
        with session_scope(self.session_factory) as session:
            return [_row_to_location(loc, country) for loc, country in session.execute(stmt).all()]

    def nearest(self, latitude: float, longitude: float) -> Optional[LocationRecord]:
        distance = func.abs(Location.latitude - latitude) + func.abs(Location.longitude - longitude)
        stmt = self._base_query().order_by(distance, Location.id).limit(1)
        with session_scope(self.session_factory) as session:
            row = session.execute(stmt).first()
            return _row_to_location(*row) if row else None

    def get(self, location_id: int) -> Optional[LocationRecord]:
        stmt = self._base_query().where(Location.id == location_id)
        with session_scope(self.session_factory) as session:
            row = session.execute(stmt).first()
            return _row_to_location(*row) if row else None


class SqlFixedTimeStore(FixedTimeStore):
    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory

    def get(self, location_id: int, month_day: str) -> Optional[FixedTimes]:
        stmt = select(PrayerTime).where(PrayerTime.location_id == location_id, PrayerTime.date == month_day).limit(1)
        with session_scope(self.session_factory) as session:
            row = session.execute(stmt).scalars().first()
            if row is None:
                return None
            return FixedTimes(
                fajr=row.fajr,
                sunrise=row.sunrise,
                dhuhr=row.dhuhr,
                asr=row.asr,
                maghrib=row.maghrib,
                isha=row.isha,
            )
