"""
Location resolution: name prefix search, nearest-by-coordinates fallback and
depends-on indirection for fixed prayer times.
"""
import logging
from typing import List, Optional

from .base import LocationDataset, LocationRecord


class LocationResolver:
    def __init__(self, dataset: LocationDataset):
        self.dataset = dataset
        self.logger = logging.getLogger(self.__class__.__name__)

    def find_by_name(self, query: str) -> Optional[LocationRecord]:
        """First record whose name starts with query (case-insensitive), in dataset order."""
        if not query or not query.strip():
            return None
        matches = self.dataset.search_by_prefix(query.strip(), limit=1)
        return matches[0] if matches else None

    def find_nearest(self, latitude: float, longitude: float) -> Optional[LocationRecord]:
        """Closest record by Manhattan distance in degrees."""
        return self.dataset.nearest(latitude, longitude)

    def search(self, query: str, limit: Optional[int] = 50) -> List[LocationRecord]:
        if not query or not query.strip():
            return []
        return self.dataset.search_by_prefix(query.strip(), limit=limit)

    def geocode(self, country_code: str, name: str) -> Optional[LocationRecord]:
        """Name prefix match restricted to one country."""
        if not name or not name.strip():
            return None
        matches = self.dataset.search_by_prefix(name.strip(), country_code=country_code, limit=1)
        return matches[0] if matches else None

    def resolve(self, name: Optional[str], latitude: float = 0.0, longitude: float = 0.0) -> Optional[LocationRecord]:
        """Name search first; nearest-by-coordinates only when both coordinates are non-zero."""
        location = self.find_by_name(name) if name else None
        if location is not None:
            return location
        if latitude and longitude:
            location = self.find_nearest(latitude, longitude)
            if location is not None:
                self.logger.info(f"Reverse geocode: ({latitude}, {longitude}) -> {location.name} (id={location.id})")
            return location
        return None

    @staticmethod
    def fixed_time_source(location: LocationRecord) -> int:
        """Id used to look up stored times: the depends-on target if configured, else the location itself."""
        if location.depends_on_id is not None:
            return location.depends_on_id
        return location.id

    @staticmethod
    def ad_hoc(name: str, latitude: float, longitude: float, country_code: str = "", country_name: str = "") -> LocationRecord:
        """Non-persisted location (id 0) for computed-only use."""
        return LocationRecord(
            id=0,
            name=name,
            country_code=country_code,
            country_name=country_name,
            latitude=latitude,
            longitude=longitude,
            has_fixed_times=False,
            depends_on_id=None,
        )
