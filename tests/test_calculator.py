import math
from datetime import date, datetime, timedelta, timezone

import pytest

from prayer_engine.locations.base import LocationRecord
from prayer_engine.locations.resolver import LocationResolver
from prayer_engine.prayer.base import INVALID_TIME, PRAYER_NAMES
from prayer_engine.prayer.calculator import (
    FAJR,
    ISHA,
    MAGHRIB,
    SUNRISE,
    SUNSET,
    PrayerTimeCalculator,
    float_to_time24,
    infer_timezone,
    parse_time24,
    time_string_to_datetime,
)
from prayer_engine.prayer.methods import CalculationAttribute

from conftest import ERBIL

# Polar circle in mid May: the sun rises and sets but twilight never ends
TROMSO_REGION = LocationResolver.ad_hoc("Polar", 66.5, 18.9)
POLAR_DAY = date(2026, 5, 15)

def _minutes(value: datetime) -> int:
    return value.hour * 60 + value.minute

def test_erbil_first_day_of_ramadan(calculator, ramadan_start):
    assert calculator.compute_day_times(ERBIL, ramadan_start, 3) == ["05:20", "06:48", "12:18", "15:22", "17:48", "19:18"]
    result = calculator.compute(ERBIL, ramadan_start, 3)
    assert result.fajr == datetime(2026, 2, 18, 5, 20)
    assert result.isha == datetime(2026, 2, 18, 19, 18)

def test_makkah_isha_is_exactly_ninety_minutes_after_maghrib(calculator, ramadan_start):
    result = calculator.compute(ERBIL, ramadan_start, 3)
    assert _minutes(result.isha) - _minutes(result.maghrib) == 90

@pytest.mark.parametrize("month", range(1, 13))
def test_prayers_are_ordered_at_moderate_latitude(calculator, month):
    result = calculator.compute(ERBIL, date(2026, month, 15), 3)
    assert result is not None
    values = list(result)
    assert values == sorted(values)
    assert len(set(values)) == len(PRAYER_NAMES)

def test_same_input_gives_same_output(calculator, ramadan_start):
    first = calculator.compute_day_times(ERBIL, ramadan_start, 3)
    second = calculator.compute_day_times(ERBIL, ramadan_start, 3)
    assert first == second

def test_hanafi_asr_is_later_than_shafii(ramadan_start):
    shafii = PrayerTimeCalculator(CalculationAttribute(asr_method="shafii")).compute(ERBIL, ramadan_start, 3)
    hanafi = PrayerTimeCalculator(CalculationAttribute(asr_method="hanafi")).compute(ERBIL, ramadan_start, 3)
    assert hanafi.asr > shafii.asr
    assert hanafi.fajr == shafii.fajr
    assert hanafi.maghrib == shafii.maghrib

def test_timezone_shifts_every_time_by_whole_hours(calculator, ramadan_start):
    utc3 = calculator.compute_raw_times(ERBIL, ramadan_start, 3)
    utc4 = calculator.compute_raw_times(ERBIL, ramadan_start, 4)
    for a, b in zip(utc3, utc4):
        assert b - a == pytest.approx(1.0)

def test_timezone_from_aware_datetime(calculator):
    day = datetime(2026, 2, 18, tzinfo=timezone(timedelta(hours=3)))
    assert infer_timezone(day) == 3.0
    assert calculator.compute(ERBIL, day) == calculator.compute(ERBIL, date(2026, 2, 18), 3)

def test_offsets_move_single_prayers(ramadan_start):
    base = PrayerTimeCalculator(CalculationAttribute()).compute_raw_times(ERBIL, ramadan_start, 3)
    shifted = PrayerTimeCalculator(CalculationAttribute(offsets=(2, 0, 0, 0, 3, -1))).compute_raw_times(ERBIL, ramadan_start, 3)
    assert shifted[FAJR] - base[FAJR] == pytest.approx(2 / 60)
    assert shifted[SUNRISE] == pytest.approx(base[SUNRISE])
    assert shifted[MAGHRIB] - base[MAGHRIB] == pytest.approx(3 / 60)
    assert shifted[ISHA] - base[ISHA] == pytest.approx(-1 / 60)
    # sunset is internal and never offset
    assert shifted[SUNSET] == pytest.approx(base[SUNSET])

def test_more_iterations_converge_to_the_same_minute_range(ramadan_start):
    one = PrayerTimeCalculator(num_iterations=1).compute(ERBIL, ramadan_start, 3)
    three = PrayerTimeCalculator(num_iterations=3).compute(ERBIL, ramadan_start, 3)
    for a, b in zip(one, three):
        assert abs(_minutes(a) - _minutes(b)) <= 2

def test_iterations_must_be_positive():
    with pytest.raises(ValueError):
        PrayerTimeCalculator(num_iterations=0)

@pytest.mark.parametrize("latitude, longitude", [(91.0, 0.0), (-90.5, 10.0), (10.0, 181.0), (None, 10.0)])
def test_out_of_range_coordinates_are_rejected(calculator, latitude, longitude):
    location = LocationRecord(0, "Nowhere", latitude=latitude, longitude=longitude)
    with pytest.raises(ValueError):
        calculator.compute(location, date(2026, 2, 18), 0)

def test_polar_twilight_without_correction_is_undefined():
    calculator = PrayerTimeCalculator(CalculationAttribute(method="mwl", high_latitude="none"))
    assert calculator.compute(TROMSO_REGION, POLAR_DAY, 2) is None

    strings = calculator.compute_day_times(TROMSO_REGION, POLAR_DAY, 2)
    assert strings[0] == INVALID_TIME
    assert strings[5] == INVALID_TIME
    assert INVALID_TIME not in (strings[1], strings[2], strings[4])

    partial = calculator.compute_result(TROMSO_REGION, POLAR_DAY, 2)
    assert partial.fajr is None and partial.isha is None
    assert partial.sunrise is not None
    assert not partial.is_complete

@pytest.mark.parametrize("rule", ["angleBased", "oneSeven"])
def test_polar_twilight_with_correction_is_complete(rule):
    calculator = PrayerTimeCalculator(CalculationAttribute(method="mwl", high_latitude=rule))
    result = calculator.compute(TROMSO_REGION, POLAR_DAY, 2)
    assert result is not None
    assert result.is_complete

def test_polar_midnight_rule_pushes_isha_past_midnight():
    attribute = CalculationAttribute(method="mwl", high_latitude="midNight")
    assert PrayerTimeCalculator(attribute).compute(TROMSO_REGION, POLAR_DAY, 2) is None

    result = PrayerTimeCalculator(attribute, allow_next_day=True).compute(TROMSO_REGION, POLAR_DAY, 2)
    assert result is not None
    assert result.isha.date() == POLAR_DAY + timedelta(days=1)
    assert list(result) == sorted(result)

# 50N in late June: Makkah's fixed 90 minutes after maghrib crosses midnight
SUMMER_NORTH = LocationResolver.ad_hoc("North", 50.0, 0.0)
SOLSTICE = date(2026, 6, 21)

def test_isha_after_midnight_is_invalid_by_default(calculator, caplog):
    assert calculator.compute(SUMMER_NORTH, SOLSTICE, 3) is None

    partial = calculator.compute_result(SUMMER_NORTH, SOLSTICE, 3)
    assert partial.isha is None
    assert partial.maghrib == datetime(2026, 6, 21, 23, 13)
    assert partial.fajr == datetime(2026, 6, 21, 4, 30)

    strings = calculator.compute_day_times(SUMMER_NORTH, SOLSTICE, 3)
    assert strings[4] == "23:13"
    assert strings[5] == INVALID_TIME
    assert "isha for 2026-06-21 falls on 2026-06-22" in caplog.text

def test_isha_after_midnight_is_anchored_to_next_day_when_allowed():
    calculator = PrayerTimeCalculator(CalculationAttribute(), allow_next_day=True)
    result = calculator.compute(SUMMER_NORTH, SOLSTICE, 3)
    assert result is not None
    assert result.maghrib == datetime(2026, 6, 21, 23, 13)
    assert result.isha == datetime(2026, 6, 22, 0, 43)
    assert list(result) == sorted(result)
    assert calculator.compute_day_times(SUMMER_NORTH, SOLSTICE, 3)[5] == "00:43"

def test_clock_a_full_day_ahead_of_the_sun_keeps_the_same_day(calculator):
    # UTC+13 at 175W: every raw time lands past 24h, none is moved to another day
    tonga = LocationResolver.ad_hoc("Tonga", -21.1, -175.2)
    result = calculator.compute(tonga, date(2026, 2, 18), 13)
    assert result is not None
    assert {value.date() for value in result} == {date(2026, 2, 18)}

def test_angle_based_bounds_fajr_by_night_portion():
    calculator = PrayerTimeCalculator(CalculationAttribute(method="mwl", high_latitude="angleBased"))
    times = calculator.compute_raw_times(TROMSO_REGION, POLAR_DAY, 2)
    night = (times[SUNRISE] - times[SUNSET]) % 24
    assert not math.isnan(times[FAJR])
    assert times[SUNRISE] - times[FAJR] == pytest.approx(18 / 60 * night)
    assert (times[ISHA] - times[SUNSET]) % 24 == pytest.approx(17 / 60 * night)

def test_correction_leaves_moderate_latitudes_alone(ramadan_start):
    corrected = PrayerTimeCalculator(CalculationAttribute(high_latitude="angleBased"))
    plain = PrayerTimeCalculator(CalculationAttribute(high_latitude="none"))
    assert corrected.compute_day_times(ERBIL, ramadan_start, 3) == plain.compute_day_times(ERBIL, ramadan_start, 3)

@pytest.mark.parametrize("hours, text", [
    (5.5, "05:30"),
    (12 + 14.6 / 60, "12:15"),
    (12 + 14.4 / 60, "12:14"),
    (23.999, "00:00"),
    (-0.5, "23:30"),
    (math.nan, INVALID_TIME),
    (None, INVALID_TIME),
])
def test_float_to_time24(hours, text):
    assert float_to_time24(hours) == text

def test_parse_time24():
    assert parse_time24("05:30") == pytest.approx(5.5)
    assert parse_time24(INVALID_TIME) is None
    assert parse_time24(None) is None

def test_parse_time24_round_trips_float_to_time24_within_a_minute():
    for i in range(24 * 97):
        hours = i / 97
        parsed = parse_time24(float_to_time24(hours))
        diff = abs(parsed - hours)
        # 23:59:45 and later print as 00:00
        assert min(diff, 24 - diff) <= 1 / 60 + 1e-9, hours

def test_time_string_to_datetime():
    day = date(2026, 2, 18)
    assert time_string_to_datetime("17:47", day) == datetime(2026, 2, 18, 17, 47)
    assert time_string_to_datetime(INVALID_TIME, day) is None
    assert time_string_to_datetime("25:00", day) is None
    assert time_string_to_datetime("ab:cd", day) is None
