from .base import (
    FixedTimes,
    FixedTimeStore,
    InMemoryFixedTimeStore,
    InMemoryLocationDataset,
    LocationDataset,
    LocationRecord,
)
from .resolver import LocationResolver

__all__ = [
    "FixedTimes",
    "FixedTimeStore",
    "InMemoryFixedTimeStore",
    "InMemoryLocationDataset",
    "LocationDataset",
    "LocationRecord",
    "LocationResolver",
]
