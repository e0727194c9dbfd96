"""
Astronomical prayer time calculator.

One pass of the classic fixed-point iteration over seven approximate times
(fajr, sunrise, dhuhr, asr, sunset, maghrib, isha), then timezone/longitude
shift, minute-based maghrib/isha rules, high latitude correction and per-prayer
offsets. Sunset is an internal slot and never returned.

All per-call state (latitude, longitude, timezone, julian date) travels in an
immutable DayContext, so one calculator instance can be shared between threads.
"""
import logging
import math
from collections import namedtuple
from datetime import date, datetime, time, timedelta
from typing import Any, List, Optional, Sequence

from .astronomy import (
    darccos,
    darccot,
    dcos,
    dsin,
    dtan,
    equation_of_time,
    fix_hour,
    julian_date,
    sun_declination,
    time_diff,
)
from .base import INVALID_TIME, PRAYER_NAMES, PrayerTimeResult
from .methods import CalculationAttribute, HighLatitudeMethod, MethodParams, get_method_params

# Sun's apparent radius plus atmospheric refraction at the horizon
SUNRISE_ANGLE = 0.833

SEED_TIMES = (5.0, 6.0, 12.0, 13.0, 18.0, 18.0, 18.0)

FAJR, SUNRISE, DHUHR, ASR, SUNSET, MAGHRIB, ISHA = range(7)

# Slots that map onto PrayerTimeResult / offset positions (sunset dropped)
VISIBLE_SLOTS = (FAJR, SUNRISE, DHUHR, ASR, MAGHRIB, ISHA)

DEFAULT_ISHA_ANGLE = 18.0
DEFAULT_MAGHRIB_ANGLE = 4.0

DayContext = namedtuple("DayContext", ["latitude", "longitude", "timezone", "jdate"])


def float_to_time24(hours: float) -> str:
    """Decimal hours -> "HH:MM", rounded to the nearest minute. Undefined -> INVALID_TIME."""
    if hours is None or not math.isfinite(hours):
        return INVALID_TIME
    fixed = fix_hour(hours + 0.5 / 60.0)
    hh = int(math.floor(fixed))
    mm = int(math.floor((fixed - hh) * 60.0))
    return f"{hh:02d}:{mm:02d}"


def parse_time24(text: str) -> Optional[float]:
    """ "HH:MM" -> decimal hours, None for INVALID_TIME or malformed text."""
    try:
        hh, mm = text.strip().split(":")[:2]
        return int(hh) + int(mm) / 60.0
    except (AttributeError, ValueError):
        return None


def time_string_to_datetime(text: str, day: date) -> Optional[datetime]:
    """Anchor an "HH:MM" string to the given calendar date."""
    if text is None or text == INVALID_TIME:
        return None
    try:
        hh, mm = text.strip().split(":")[:2]
        return datetime.combine(day, time(int(hh), int(mm)))
    except (AttributeError, ValueError):
        return None


def infer_timezone(day: date) -> float:
    """UTC offset in hours: an aware datetime's own offset, else the system zone on that date."""
    if isinstance(day, datetime) and day.tzinfo is not None:
        offset = day.utcoffset()
    else:
        offset = datetime(day.year, day.month, day.day, 12).astimezone().utcoffset()
    return offset.total_seconds() / 3600.0


def validate_coordinates(latitude: float, longitude: float) -> None:
    if latitude is None or longitude is None:
        raise ValueError("Latitude and longitude are required")
    if not -90.0 <= latitude <= 90.0:
        raise ValueError(f"Latitude out of range [-90, 90]: {latitude}")
    if not -180.0 <= longitude <= 180.0:
        raise ValueError(f"Longitude out of range [-180, 180]: {longitude}")


class PrayerTimeCalculator:
    """Computes the six daily prayer times for a location and date."""

    def __init__(
        self,
        attribute: Optional[CalculationAttribute] = None,
        num_iterations: int = 1,
        custom_params: Optional[Sequence[float]] = None,
        allow_next_day: bool = False,
    ):
        self.attribute = attribute or CalculationAttribute()
        if num_iterations < 1:
            raise ValueError(f"num_iterations must be >= 1, got {num_iterations}")
        self.num_iterations = num_iterations
        # A time past midnight (or before it) is anchored to the neighbouring day
        # when allowed, and reported as undefined otherwise
        self.allow_next_day = allow_next_day
        self.params: MethodParams = get_method_params(self.attribute.method, custom_params)
        self.logger = logging.getLogger(self.__class__.__name__)

    # --- public entry points ---

    def compute(self, location: Any, day: date, timezone: Optional[float] = None) -> Optional[PrayerTimeResult]:
        """All six times for the day, or None if any of them is undefined or the computation fails."""
        result = self.compute_result(location, day, timezone)
        if result is None or not result.is_complete:
            return None
        return result

    def compute_result(self, location: Any, day: date, timezone: Optional[float] = None) -> Optional[PrayerTimeResult]:
        """Like compute() but keeps per-prayer invalidity (None fields). None only on failure."""
        times = self.compute_raw_times(location, day, timezone)
        if times is None:
            return None
        anchor = day.date() if isinstance(day, datetime) else day
        values = []
        for slot, shift in zip(VISIBLE_SLOTS, self._day_shifts(times, anchor)):
            moment = time_string_to_datetime(float_to_time24(times[slot]), anchor) if shift is not None else None
            values.append(moment + timedelta(days=shift) if moment is not None else None)
        return PrayerTimeResult(*values)

    def compute_day_times(self, location: Any, day: date, timezone: Optional[float] = None) -> Optional[List[str]]:
        """Six "HH:MM" strings (INVALID_TIME where undefined, or on another day when that is not allowed)."""
        times = self.compute_raw_times(location, day, timezone)
        if times is None:
            return None
        anchor = day.date() if isinstance(day, datetime) else day
        return [
            float_to_time24(times[slot]) if shift is not None else INVALID_TIME
            for slot, shift in zip(VISIBLE_SLOTS, self._day_shifts(times, anchor))
        ]

    def compute_raw_times(self, location: Any, day: date, timezone: Optional[float] = None) -> Optional[List[float]]:
        """Seven adjusted decimal hours including the internal sunset slot. NaN where undefined."""
        validate_coordinates(location.latitude, location.longitude)
        ctx = self._make_context(location, day, timezone)
        try:
            times = list(SEED_TIMES)
            for _ in range(self.num_iterations):
                times = self._compute_times(ctx, times)
            return self._adjust_times(ctx, times)
        except (ArithmeticError, ValueError, TypeError) as e:
            self.logger.error(f"Prayer time computation failed for {day} at ({ctx.latitude}, {ctx.longitude}): {e}")
            return None

    # --- internals ---

    def _day_shifts(self, times: List[float], day: date) -> List[Optional[int]]:
        """
        Per visible prayer: days between `day` and the calendar day the time falls on,
        measured against Dhuhr's day. None when undefined, or when it is on another day
        and allow_next_day is off (e.g. Isha after midnight in high-latitude summers).
        """
        noon_day = math.floor(times[DHUHR] / 24.0)
        shifts: List[Optional[int]] = []
        for name, slot in zip(PRAYER_NAMES, VISIBLE_SLOTS):
            hours = times[slot]
            if hours is None or not math.isfinite(hours):
                shifts.append(None)
                continue
            # same rounding as float_to_time24: 23:59:45 is 00:00 of the next day
            shift = int(math.floor((hours + 0.5 / 60.0) / 24.0) - noon_day)
            if shift and not self.allow_next_day:
                self.logger.warning(
                    f"{name} for {day} falls on {day + timedelta(days=shift)} ({float_to_time24(hours)}); "
                    f"marked invalid because allow_next_day is off"
                )
                shifts.append(None)
                continue
            if shift:
                self.logger.warning(f"{name} for {day} falls on {day + timedelta(days=shift)} ({float_to_time24(hours)})")
            shifts.append(shift)
        return shifts

    def _make_context(self, location: Any, day: date, timezone: Optional[float]) -> DayContext:
        tz = float(timezone) if timezone is not None else infer_timezone(day)
        jdate = julian_date(day.year, day.month, day.day) - location.longitude / (15.0 * 24.0)
        return DayContext(float(location.latitude), float(location.longitude), tz, jdate)

    def _compute_midday(self, ctx: DayContext, t: float) -> float:
        eqt = equation_of_time(ctx.jdate + t)
        return fix_hour(12.0 - eqt)

    def _compute_time(self, ctx: DayContext, angle: float, t: float) -> float:
        """Time at which the sun reaches `angle`; angles above 90 are measured on the morning side."""
        decl = sun_declination(ctx.jdate + t)
        midday = self._compute_midday(ctx, t)
        beg = -dsin(angle) - dsin(decl) * dsin(ctx.latitude)
        mid = dcos(decl) * dcos(ctx.latitude)
        v = darccos(beg / mid) / 15.0
        return midday + (-v if angle > 90 else v)

    def _compute_asr(self, ctx: DayContext, step: float, t: float) -> float:
        decl = sun_declination(ctx.jdate + t)
        angle = -darccot(step + dtan(abs(ctx.latitude - decl)))
        return self._compute_time(ctx, angle, t)

    def _compute_times(self, ctx: DayContext, times: List[float]) -> List[float]:
        t = [value / 24.0 for value in times]
        params = self.params
        return [
            self._compute_time(ctx, 180.0 - params.fajr_angle, t[FAJR]),
            self._compute_time(ctx, 180.0 - SUNRISE_ANGLE, t[SUNRISE]),
            self._compute_midday(ctx, t[DHUHR]),
            self._compute_asr(ctx, 1 + int(self.attribute.asr_method), t[ASR]),
            self._compute_time(ctx, SUNRISE_ANGLE, t[SUNSET]),
            self._compute_time(ctx, params.maghrib_value, t[MAGHRIB]),
            self._compute_time(ctx, params.isha_value, t[ISHA]),
        ]

    def _adjust_times(self, ctx: DayContext, times: List[float]) -> List[float]:
        params = self.params
        shift = ctx.timezone - ctx.longitude / 15.0
        times = [value + shift for value in times]
        if params.maghrib_is_minutes:
            times[MAGHRIB] = times[SUNSET] + params.maghrib_value / 60.0
        if params.isha_is_minutes:
            times[ISHA] = times[MAGHRIB] + params.isha_value / 60.0
        if self.attribute.high_latitude is not HighLatitudeMethod.NONE:
            times = self._adjust_high_lat_times(times)
        for slot, offset in zip(VISIBLE_SLOTS, self.attribute.offsets):
            if offset:
                times[slot] += offset / 60.0
        return times

    def _adjust_high_lat_times(self, times: List[float]) -> List[float]:
        params = self.params
        night = time_diff(times[SUNSET], times[SUNRISE])

        fajr_diff = self._night_portion(params.fajr_angle) * night
        if math.isnan(times[FAJR]) or time_diff(times[FAJR], times[SUNRISE]) > fajr_diff:
            times[FAJR] = times[SUNRISE] - fajr_diff

        isha_angle = params.isha_value if not params.isha_is_minutes else DEFAULT_ISHA_ANGLE
        isha_diff = self._night_portion(isha_angle) * night
        if math.isnan(times[ISHA]) or time_diff(times[SUNSET], times[ISHA]) > isha_diff:
            times[ISHA] = times[SUNSET] + isha_diff

        maghrib_angle = params.maghrib_value if not params.maghrib_is_minutes else DEFAULT_MAGHRIB_ANGLE
        maghrib_diff = self._night_portion(maghrib_angle) * night
        if math.isnan(times[MAGHRIB]) or time_diff(times[SUNSET], times[MAGHRIB]) > maghrib_diff:
            times[MAGHRIB] = times[SUNSET] + maghrib_diff

        return times

    def _night_portion(self, angle: float) -> float:
        method = self.attribute.high_latitude
        if method is HighLatitudeMethod.ANGLE_BASED:
            return angle / 60.0
        if method is HighLatitudeMethod.MID_NIGHT:
            return 0.5
        return 0.14286
