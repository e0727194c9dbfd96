from datetime import date

import pytest

from prayer_engine.core.db import init_db, reset_db, session_scope
from prayer_engine.core.models import Country, Location, PrayerTime
from prayer_engine.locations.base import (
    FixedTimes,
    InMemoryFixedTimeStore,
    InMemoryLocationDataset,
    LocationRecord,
)
from prayer_engine.locations.resolver import LocationResolver
from prayer_engine.prayer.calculator import PrayerTimeCalculator
from prayer_engine.prayer.methods import CalculationAttribute

ERBIL = LocationRecord(1, "Erbil", "IQ", "Iraq", 36.191951, 43.9834083, False, None)
BAGHDAD = LocationRecord(2, "Baghdad", "IQ", "Iraq", 33.311072, 44.345907, True, None)
# Stored times of Baghdad apply here
KADHIMIYA = LocationRecord(3, "Kadhimiya", "IQ", "Iraq", 33.38, 44.34, True, 2)
# Comes after Erbil in dataset order and also contains "erbil"
NEW_ERBIL = LocationRecord(4, "New Erbil", "IQ", "Iraq", 36.2, 44.1, False, None)
ERBIL_AIRPORT = LocationRecord(5, "Erbil Airport", "IQ", "Iraq", 36.237, 43.963, False, None)
BASRA = LocationRecord(6, "Basra", "IQ", "Iraq", 30.508, 47.783, True, None)
AMMAN = LocationRecord(7, "Amman", "JO", "Jordan", 31.9539, 35.9106, False, None)

RECORDS = [ERBIL, BAGHDAD, KADHIMIYA, NEW_ERBIL, ERBIL_AIRPORT, BASRA, AMMAN]

BAGHDAD_FEB_18 = FixedTimes("05:20", "06:43", "12:18", "15:25", "17:53", "19:08")
BAGHDAD_FEB_19 = FixedTimes("05:19", "06:42", "12:18", "15:26", "17:54", "19:09")
BASRA_FEB_18 = FixedTimes("05:08", "06:30", "12:05", "15:14", "17:41", "18:55")
# One of the mandatory markers is broken
BASRA_FEB_19 = FixedTimes("5:xx", "06:29", "12:05", "15:15", "17:42", "18:56")


@pytest.fixture
def dataset():
    return InMemoryLocationDataset(RECORDS)


@pytest.fixture
def store():
    # 02-20 is missing for everybody
    return InMemoryFixedTimeStore({
        (2, "02-18"): BAGHDAD_FEB_18,
        (2, "02-19"): BAGHDAD_FEB_19,
        (6, "02-18"): BASRA_FEB_18,
        (6, "02-19"): BASRA_FEB_19,
    })


@pytest.fixture
def resolver(dataset):
    return LocationResolver(dataset)


@pytest.fixture
def calculator():
    return PrayerTimeCalculator(CalculationAttribute())


@pytest.fixture
def ramadan_start():
    return date(2026, 2, 18)


@pytest.fixture
def session_factory():
    """In-memory SQLite reference database with the same records as the dataset fixture."""
    reset_db()
    factory = init_db(db_url="sqlite://")
    with session_scope(factory) as session:
        countries = {"IQ": Country(id=1, code="IQ", name="Iraq"), "JO": Country(id=2, code="JO", name="Jordan")}
        session.add_all(countries.values())
        session.flush()
        for r in RECORDS:
            session.add(Location(
                id=r.id,
                country_id=countries[r.country_code].id,
                name=r.name,
                latitude=r.latitude,
                longitude=r.longitude,
                has_fixed_prayer_time=r.has_fixed_times,
                prayer_dependent_id=r.depends_on_id,
            ))
        session.flush()
        for location_id, key, times in (
            (2, "02-18", BAGHDAD_FEB_18),
            (2, "02-19", BAGHDAD_FEB_19),
            (6, "02-18", BASRA_FEB_18),
        ):
            session.add(PrayerTime(location_id=location_id, date=key, **times._asdict()))
    yield factory
    reset_db()
