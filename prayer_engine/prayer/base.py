"""
Value types for prayer time results.
PrayerTimeResult fields are datetimes anchored to the requested date, or None when
that prayer's time is undefined (e.g. twilight never ends near the poles).
"""
from collections import namedtuple
from typing import Dict

PRAYER_NAMES = ("fajr", "sunrise", "dhuhr", "asr", "maghrib", "isha")

INVALID_TIME = "-----"

SOURCE_FIXED = "fixed"
SOURCE_COMPUTED = "computed"


class PrayerTimeResult(namedtuple("PrayerTimeResult", PRAYER_NAMES)):
    __slots__ = ()

    @property
    def is_complete(self) -> bool:
        return all(value is not None for value in self)

    def as_strings(self) -> Dict[str, str]:
        """prayer_name -> "HH:MM" (INVALID_TIME for undefined prayers)."""
        return {
            name: value.strftime("%H:%M") if value is not None else INVALID_TIME
            for name, value in zip(PRAYER_NAMES, self)
        }
