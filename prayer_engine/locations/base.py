"""
Base types and interfaces for the location reference dataset and the fixed-time store.
Implementations return LocationRecord / FixedTimes; no dicts.
"""
from abc import ABC, abstractmethod
from collections import namedtuple
from typing import Dict, Iterable, List, Optional, Tuple

LocationRecord = namedtuple(
    "LocationRecord",
    [
        "id",               # 0 for ad-hoc locations built from raw coordinates
        "name",
        "country_code",
        "country_name",
        "latitude",
        "longitude",        # east-positive
        "has_fixed_times",  # bool
        "depends_on_id",    # id whose stored times apply here, or None
    ],
    defaults=("", "", 0.0, 0.0, False, None),
)

# Stored "HH:MM" strings for one location and month-day. Only fajr and maghrib are mandatory.
FixedTimes = namedtuple(
    "FixedTimes",
    ["fajr", "sunrise", "dhuhr", "asr", "maghrib", "isha"],
    defaults=(None,) * 6,
)


def month_day_key(day) -> str:
    """Store key for a date: "MM-DD"."""
    return f"{day.month:02d}-{day.day:02d}"


class LocationDataset(ABC):
    """Read-only location reference dataset."""

    @abstractmethod
    def search_by_prefix(self, prefix: str, country_code: Optional[str] = None, limit: Optional[int] = None) -> List[LocationRecord]:
        """Case-insensitive name prefix matches, in dataset order."""
        pass

    @abstractmethod
    def nearest(self, latitude: float, longitude: float) -> Optional[LocationRecord]:
        """Record minimising |dlat| + |dlng|; None only when the dataset is empty."""
        pass

    @abstractmethod
    def get(self, location_id: int) -> Optional[LocationRecord]:
        pass


class FixedTimeStore(ABC):
    """Read-only store of precomputed prayer times keyed by (location id, "MM-DD")."""

    @abstractmethod
    def get(self, location_id: int, month_day: str) -> Optional[FixedTimes]:
        pass


class InMemoryLocationDataset(LocationDataset):
    """List-backed dataset; list order is the dataset order."""

    def __init__(self, records: Iterable[LocationRecord]):
        self.records: List[LocationRecord] = list(records)
        self._by_id = {r.id: r for r in self.records}

    def search_by_prefix(self, prefix: str, country_code: Optional[str] = None, limit: Optional[int] = None) -> List[LocationRecord]:
        needle = (prefix or "").lower()
        matches = []
        for record in self.records:
            if country_code and (record.country_code or "").lower() != country_code.lower():
                continue
            if (record.name or "").lower().startswith(needle):
                matches.append(record)
                if limit is not None and len(matches) >= limit:
                    break
        return matches

    def nearest(self, latitude: float, longitude: float) -> Optional[LocationRecord]:
        best = None
        best_distance = None
        for record in self.records:
            distance = abs(record.latitude - latitude) + abs(record.longitude - longitude)
            # strict < keeps the first record on ties
            if best_distance is None or distance < best_distance:
                best, best_distance = record, distance
        return best

    def get(self, location_id: int) -> Optional[LocationRecord]:
        return self._by_id.get(location_id)


class InMemoryFixedTimeStore(FixedTimeStore):
    def __init__(self, entries: Optional[Dict[Tuple[int, str], FixedTimes]] = None):
        self.entries: Dict[Tuple[int, str], FixedTimes] = dict(entries or {})

    def add(self, location_id: int, month_day: str, times: FixedTimes) -> None:
        self.entries[(location_id, month_day)] = times

    def get(self, location_id: int, month_day: str) -> Optional[FixedTimes]:
        return self.entries.get((location_id, month_day))
