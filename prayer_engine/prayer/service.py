"""
Single-day prayer times for a location: stored fixed times when the location has
them (through its depends-on target), the calculator otherwise.
"""
import logging
from datetime import date, datetime
from typing import Optional

from prayer_engine.locations.base import FixedTimes, FixedTimeStore, LocationRecord, month_day_key
from prayer_engine.locations.resolver import LocationResolver

from .base import SOURCE_COMPUTED, SOURCE_FIXED, PrayerTimeResult
from .calculator import PrayerTimeCalculator, time_string_to_datetime


class PrayerTimeService:
    def __init__(self, store: FixedTimeStore, calculator: PrayerTimeCalculator):
        self.store = store
        self.calculator = calculator
        self.logger = logging.getLogger(self.__class__.__name__)

    @staticmethod
    def source_for(location: LocationRecord) -> str:
        return SOURCE_FIXED if location.has_fixed_times else SOURCE_COMPUTED

    def get_prayer_times(self, location: LocationRecord, day: date, timezone: Optional[float] = None) -> Optional[PrayerTimeResult]:
        """Complete result or None. A fixed-time location never falls back to calculation."""
        if not location.has_fixed_times:
            return self.calculator.compute(location, day, timezone)

        lookup_id = LocationResolver.fixed_time_source(location)
        key = month_day_key(day)
        stored = self.store.get(lookup_id, key)
        if stored is None:
            self.logger.warning(f"No fixed prayer time for {location.name} on {key} (lookupId={lookup_id})")
            return None
        result = self._from_fixed(stored, day)
        if not result.is_complete:
            self.logger.warning(f"Incomplete fixed prayer time for {location.name} on {key} (lookupId={lookup_id})")
            return None
        return result

    def _from_fixed(self, stored: FixedTimes, day: date) -> PrayerTimeResult:
        anchor = day.date() if isinstance(day, datetime) else day
        return PrayerTimeResult(*(time_string_to_datetime(value, anchor) for value in stored))
