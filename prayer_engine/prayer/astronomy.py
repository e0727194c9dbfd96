"""
Solar position model: julian date, sun declination and equation of time.
All angles in degrees, all times in decimal hours.
"""
import math
from typing import Tuple

J2000 = 2451545.0


def fix_angle(a: float) -> float:
    """Normalize angle to [0, 360)."""
    if not math.isfinite(a):
        return math.nan
    a -= 360.0 * math.floor(a / 360.0)
    return a + 360.0 if a < 0 else a


def fix_hour(a: float) -> float:
    """Normalize hour to [0, 24)."""
    if not math.isfinite(a):
        return math.nan
    a -= 24.0 * math.floor(a / 24.0)
    return a + 24.0 if a < 0 else a


def dsin(d: float) -> float:
    return math.sin(math.radians(d))


def dcos(d: float) -> float:
    return math.cos(math.radians(d))


def dtan(d: float) -> float:
    return math.tan(math.radians(d))


def darcsin(x: float) -> float:
    return math.degrees(math.asin(x))


def darccos(x: float) -> float:
    """Arc-cosine in degrees. NaN when x is outside [-1, 1] (sun never reaches the angle)."""
    if math.isnan(x) or x < -1.0 or x > 1.0:
        return math.nan
    return math.degrees(math.acos(x))


def darctan2(y: float, x: float) -> float:
    return math.degrees(math.atan2(y, x))


def darccot(x: float) -> float:
    return math.degrees(math.atan2(1.0, x))


def time_diff(time1: float, time2: float) -> float:
    """Hours from time1 forward to time2, wrapped to [0, 24)."""
    return fix_hour(time2 - time1)


def julian_date(year: int, month: int, day: int) -> float:
    """Julian day number at 0h UT for a Gregorian calendar date."""
    if month <= 2:
        year -= 1
        month += 12
    a = math.floor(year / 100.0)
    b = 2 - a + math.floor(a / 4.0)
    return math.floor(365.25 * (year + 4716)) + math.floor(30.6001 * (month + 1)) + day + b - 1524.5


def sun_position(jd: float) -> Tuple[float, float]:
    """Return (declination in degrees, equation of time in hours) for julian date jd."""
    d = jd - J2000
    g = fix_angle(357.529 + 0.98560028 * d)
    q = fix_angle(280.459 + 0.98564736 * d)
    ecliptic_lng = fix_angle(q + 1.915 * dsin(g) + 0.020 * dsin(2 * g))
    obliquity = 23.439 - 0.00000036 * d

    declination = darcsin(dsin(obliquity) * dsin(ecliptic_lng))
    ra = darctan2(dcos(obliquity) * dsin(ecliptic_lng), dcos(ecliptic_lng)) / 15.0
    ra = fix_hour(ra)
    equation_of_time = q / 15.0 - ra
    return declination, equation_of_time


def sun_declination(jd: float) -> float:
    return sun_position(jd)[0]


def equation_of_time(jd: float) -> float:
    return sun_position(jd)[1]
