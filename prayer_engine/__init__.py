"""Prayer time calculation and location-aware schedule resolution."""

__version__ = "1.0.0"
