"""
Schedule composer: one row per (location, date) with the evening marker (maghrib)
and the pre-dawn marker (fajr - 10 minutes), taken from stored fixed times when the
location has them and from the calculator otherwise.

Mode is decided once per location. A date with no obtainable time is skipped and
recorded in the diagnostics, never defaulted.
"""
import calendar
import logging
from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from prayer_engine.locations.base import FixedTimeStore, LocationRecord, month_day_key
from prayer_engine.locations.resolver import LocationResolver
from prayer_engine.prayer.base import SOURCE_COMPUTED, SOURCE_FIXED
from prayer_engine.prayer.calculator import PrayerTimeCalculator, time_string_to_datetime

IMSAK_OFFSET_MINUTES = 10

ScheduleTarget = namedtuple(
    "ScheduleTarget",
    [
        "code",       # external city code written to the schedule table
        "name",       # name used for the prefix search
        "latitude",   # fallback coordinates, 0 = none
        "longitude",
    ],
    defaults=(0.0, 0.0),
)

ScheduleRow = namedtuple(
    "ScheduleRow",
    [
        "day_order",   # 1-based position of the date in the requested range
        "month",       # English month name
        "iftar",       # datetime, evening marker (maghrib)
        "imsak",       # datetime, pre-dawn marker (fajr - 10 min)
        "date",        # date
        "source",      # "fixed" | "computed"
        "city_code",
        "is_current",  # always 0 for generated schedules
    ],
    defaults=(0,),
)

LocationSummary = namedtuple("LocationSummary", ["code", "mode", "location", "lookup_id"])


@dataclass
class ScheduleDiagnostics:
    total_rows: int = 0
    fixed_rows: int = 0
    computed_rows: int = 0
    locations_total: int = 0
    skipped_locations: List[str] = field(default_factory=list)
    skipped_dates: Dict[str, List[date]] = field(default_factory=dict)
    locations: List[LocationSummary] = field(default_factory=list)

    @property
    def locations_processed(self) -> int:
        return self.locations_total - len(self.skipped_locations)

    @property
    def skipped_date_count(self) -> int:
        return sum(len(days) for days in self.skipped_dates.values())

    def to_dict(self) -> Dict:
        return {
            "total_rows": self.total_rows,
            "fixed_rows": self.fixed_rows,
            "computed_rows": self.computed_rows,
            "locations_total": self.locations_total,
            "locations_processed": self.locations_processed,
            "skipped_locations": list(self.skipped_locations),
            "skipped_dates": {code: [d.isoformat() for d in days] for code, days in self.skipped_dates.items()},
        }


@dataclass
class _LocationOutcome:
    target: ScheduleTarget
    summary: Optional[LocationSummary] = None
    rows: List[ScheduleRow] = field(default_factory=list)
    skipped_dates: List[date] = field(default_factory=list)


def date_range(start: date, end: date) -> List[date]:
    """Consecutive calendar days, both ends inclusive."""
    if start > end:
        raise ValueError(f"Start date {start} is after end date {end}")
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


class ScheduleComposer:
    def __init__(
        self,
        resolver: LocationResolver,
        store: FixedTimeStore,
        calculator: PrayerTimeCalculator,
        timezone: Optional[float] = None,
        default_country_code: str = "",
        default_country_name: str = "",
        max_workers: int = 1,
    ):
        self.resolver = resolver
        self.store = store
        self.calculator = calculator
        self.timezone = timezone
        self.default_country_code = default_country_code
        self.default_country_name = default_country_name
        self.max_workers = max(1, int(max_workers or 1))
        self.logger = logging.getLogger(self.__class__.__name__)

    def build_schedule(self, targets: Iterable[ScheduleTarget], start: date, end: date) -> Tuple[List[ScheduleRow], ScheduleDiagnostics]:
        """Rows for every target over [start, end], in target order then date order."""
        days = date_range(start, end)
        targets = list(targets)
        seen = set()
        for target in targets:
            # Rows, diagnostics and the export are keyed by code
            if target.code in seen:
                raise ValueError(f"Duplicate schedule target code: {target.code}")
            seen.add(target.code)

        if self.max_workers > 1 and len(targets) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                outcomes = list(executor.map(lambda t: self._build_location(t, days), targets))
        else:
            outcomes = [self._build_location(t, days) for t in targets]

        rows: List[ScheduleRow] = []
        diagnostics = ScheduleDiagnostics(locations_total=len(targets))
        for outcome in outcomes:
            if outcome.summary is None:
                diagnostics.skipped_locations.append(outcome.target.code)
                continue
            diagnostics.locations.append(outcome.summary)
            if outcome.skipped_dates:
                diagnostics.skipped_dates[outcome.target.code] = outcome.skipped_dates
            for row in outcome.rows:
                if row.source == SOURCE_FIXED:
                    diagnostics.fixed_rows += 1
                else:
                    diagnostics.computed_rows += 1
            rows.extend(outcome.rows)

        diagnostics.total_rows = len(rows)
        self.logger.info(
            f"Schedule built: {diagnostics.total_rows} rows (fixed={diagnostics.fixed_rows}, "
            f"computed={diagnostics.computed_rows}), {diagnostics.locations_processed}/{diagnostics.locations_total} "
            f"locations, {diagnostics.skipped_date_count} dates skipped"
        )
        return rows, diagnostics

    def _resolve(self, target: ScheduleTarget) -> Optional[LocationRecord]:
        location = self.resolver.resolve(target.name, target.latitude, target.longitude)
        if location is not None:
            self.logger.info(
                f"{target.code} -> {location.name} (id={location.id}, fixed={location.has_fixed_times}, "
                f"depId={location.depends_on_id})"
            )
            return location
        if not target.latitude or not target.longitude:
            self.logger.warning(f'"{target.name}" ({target.code}) not in dataset and no coordinates, skipping')
            return None
        return self.resolver.ad_hoc(
            target.name,
            target.latitude,
            target.longitude,
            self.default_country_code,
            self.default_country_name,
        )

    def _build_location(self, target: ScheduleTarget, days: List[date]) -> _LocationOutcome:
        outcome = _LocationOutcome(target=target)
        location = self._resolve(target)
        if location is None:
            return outcome

        use_fixed = bool(location.has_fixed_times)
        lookup_id = self.resolver.fixed_time_source(location) if use_fixed else None
        mode = SOURCE_FIXED if use_fixed else SOURCE_COMPUTED
        outcome.summary = LocationSummary(target.code, mode, location, lookup_id)

        for index, day in enumerate(days):
            if use_fixed:
                markers = self._fixed_markers(target, lookup_id, day)
            else:
                markers = self._computed_markers(target, location, day)
            if markers is None:
                outcome.skipped_dates.append(day)
                continue
            fajr, maghrib = markers
            outcome.rows.append(
                ScheduleRow(
                    day_order=index + 1,
                    month=calendar.month_name[day.month],
                    iftar=maghrib,
                    imsak=fajr - timedelta(minutes=IMSAK_OFFSET_MINUTES),
                    date=day,
                    source=mode,
                    city_code=target.code,
                    is_current=0,
                )
            )
        return outcome

    def _fixed_markers(self, target: ScheduleTarget, lookup_id: int, day: date) -> Optional[Tuple[datetime, datetime]]:
        key = month_day_key(day)
        stored = self.store.get(lookup_id, key)
        if stored is None:
            self.logger.warning(f"No fixed prayer time for {target.code} on {key} (lookupId={lookup_id})")
            return None
        fajr = time_string_to_datetime(stored.fajr, day)
        maghrib = time_string_to_datetime(stored.maghrib, day)
        if fajr is None or maghrib is None:
            self.logger.warning(f"Malformed fixed prayer time for {target.code} on {key}: {stored.fajr!r}, {stored.maghrib!r}")
            return None
        return fajr, maghrib

    def _computed_markers(self, target: ScheduleTarget, location: LocationRecord, day: date) -> Optional[Tuple[datetime, datetime]]:
        result = self.calculator.compute(location, day, self.timezone)
        if result is None:
            self.logger.warning(f"Could not calculate for {target.code} on {day.isoformat()}")
            return None
        return result.fajr, result.maghrib

