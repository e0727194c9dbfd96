"""
Reference dataset models: countries, locations and stored (fixed) prayer times.
Table and column names follow the bundled muslim_db SQLite file (`_id` keys,
prayer_time.date as "MM-DD").
"""
from sqlalchemy import Boolean, Column, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from prayer_engine.core.db import Base


class Country(Base):
    __tablename__ = "country"

    id = Column("_id", Integer, primary_key=True)
    code = Column(String(8), nullable=False, index=True)
    name = Column(String(255), nullable=False)

    locations = relationship("Location", back_populates="country")


class Location(Base):
    """One city/town. prayer_dependent_id points at the location whose fixed times apply here."""
    __tablename__ = "location"

    id = Column("_id", Integer, primary_key=True)
    country_id = Column(Integer, ForeignKey("country._id"), nullable=False, index=True)
    name = Column(String(255), nullable=False, index=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    has_fixed_prayer_time = Column(Boolean, default=False, nullable=False)
    prayer_dependent_id = Column(Integer, ForeignKey("location._id"), nullable=True)

    country = relationship("Country", back_populates="locations")


class PrayerTime(Base):
    """Stored prayer times for one location and month-day ("MM-DD"), values "HH:MM"."""
    __tablename__ = "prayer_time"

    id = Column("_id", Integer, primary_key=True, autoincrement=True)
    location_id = Column(Integer, ForeignKey("location._id"), nullable=False, index=True)
    date = Column(String(5), nullable=False, index=True)
    fajr = Column(String(5), nullable=False)
    sunrise = Column(String(5), nullable=True)
    dhuhr = Column(String(5), nullable=True)
    asr = Column(String(5), nullable=True)
    maghrib = Column(String(5), nullable=False)
    isha = Column(String(5), nullable=True)
