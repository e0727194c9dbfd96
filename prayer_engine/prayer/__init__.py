from .base import INVALID_TIME, PRAYER_NAMES, PrayerTimeResult
from .calculator import PrayerTimeCalculator
from .methods import AsrMethod, CalculationAttribute, CalculationMethod, HighLatitudeMethod

__all__ = [
    "INVALID_TIME",
    "PRAYER_NAMES",
    "PrayerTimeResult",
    "PrayerTimeCalculator",
    "AsrMethod",
    "CalculationAttribute",
    "CalculationMethod",
    "HighLatitudeMethod",
]
