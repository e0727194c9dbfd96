"""
Calculation method enums and the per-method parameter table.
"""
from collections import namedtuple
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple


class CalculationMethod(str, Enum):
    MAKKAH = "makkah"  # Umm al-Qura
    MWL = "mwl"  # Muslim World League
    ISNA = "isna"
    KARACHI = "karachi"
    EGYPT = "egypt"
    JAFARI = "jafari"
    TEHRAN = "tehran"
    CUSTOM = "custom"


class AsrMethod(int, Enum):
    SHAFII = 0
    HANAFI = 1


class HighLatitudeMethod(str, Enum):
    ANGLE_BASED = "angleBased"
    MID_NIGHT = "midNight"
    ONE_SEVENTH = "oneSeven"
    NONE = "none"


# fajr angle, maghrib is minutes after sunset (0|1), maghrib minutes or angle,
# isha is minutes after maghrib (0|1), isha minutes or angle
MethodParams = namedtuple(
    "MethodParams",
    ["fajr_angle", "maghrib_is_minutes", "maghrib_value", "isha_is_minutes", "isha_value"],
)

METHOD_PARAMS: Dict[CalculationMethod, MethodParams] = {
    CalculationMethod.MAKKAH: MethodParams(18.5, 1, 0.0, 1, 90.0),
    CalculationMethod.MWL: MethodParams(18.0, 1, 0.0, 0, 17.0),
    CalculationMethod.ISNA: MethodParams(15.0, 1, 0.0, 0, 15.0),
    CalculationMethod.KARACHI: MethodParams(18.0, 1, 0.0, 0, 18.0),
    CalculationMethod.EGYPT: MethodParams(19.5, 1, 0.0, 0, 17.5),
    CalculationMethod.JAFARI: MethodParams(16.0, 0, 4.0, 0, 14.0),
    CalculationMethod.TEHRAN: MethodParams(17.7, 0, 4.5, 0, 14.0),
    CalculationMethod.CUSTOM: MethodParams(18.0, 1, 0.0, 0, 17.0),
}

# Accepted spellings besides the enum values (config files, query strings)
_HIGH_LATITUDE_ALIASES = {
    "angle_based": HighLatitudeMethod.ANGLE_BASED,
    "anglebased": HighLatitudeMethod.ANGLE_BASED,
    "mid_night": HighLatitudeMethod.MID_NIGHT,
    "midnight": HighLatitudeMethod.MID_NIGHT,
    "one_seventh": HighLatitudeMethod.ONE_SEVENTH,
    "oneseventh": HighLatitudeMethod.ONE_SEVENTH,
    "oneseven": HighLatitudeMethod.ONE_SEVENTH,
    "none": HighLatitudeMethod.NONE,
}


def get_method_params(method: CalculationMethod, custom_params: Optional[Sequence[float]] = None) -> MethodParams:
    """Parameters for a method. custom_params overrides the CUSTOM row only."""
    method = parse_method(method)
    if method is CalculationMethod.CUSTOM and custom_params is not None:
        if len(custom_params) != 5:
            raise ValueError(f"Custom method parameters need 5 values, got {len(custom_params)}")
        return MethodParams(*(float(v) for v in custom_params))
    return METHOD_PARAMS[method]


def parse_method(value: Any) -> CalculationMethod:
    if isinstance(value, CalculationMethod):
        return value
    try:
        return CalculationMethod(str(value).strip().lower())
    except ValueError:
        raise ValueError(f"Unknown calculation method: {value!r}") from None


def parse_asr_method(value: Any) -> AsrMethod:
    if isinstance(value, AsrMethod):
        return value
    if isinstance(value, str):
        name = value.strip().upper()
        if name in AsrMethod.__members__:
            return AsrMethod[name]
        if name.isdigit():
            value = int(name)
    try:
        return AsrMethod(value)
    except ValueError:
        raise ValueError(f"Unknown asr method: {value!r}") from None


def parse_high_latitude(value: Any) -> HighLatitudeMethod:
    if isinstance(value, HighLatitudeMethod):
        return value
    text = str(value).strip()
    try:
        return HighLatitudeMethod(text)
    except ValueError:
        pass
    alias = _HIGH_LATITUDE_ALIASES.get(text.lower())
    if alias is None:
        raise ValueError(f"Unknown high latitude method: {value!r}")
    return alias


@dataclass(frozen=True)
class CalculationAttribute:
    """Method, asr juristic school, high-latitude policy and per-prayer minute offsets."""

    method: CalculationMethod = CalculationMethod.MAKKAH
    asr_method: AsrMethod = AsrMethod.SHAFII
    high_latitude: HighLatitudeMethod = HighLatitudeMethod.ANGLE_BASED
    offsets: Tuple[float, ...] = field(default=(0, 0, 0, 0, 0, 0))

    def __post_init__(self):
        # frozen: assign coerced values through object.__setattr__
        object.__setattr__(self, "method", parse_method(self.method))
        object.__setattr__(self, "asr_method", parse_asr_method(self.asr_method))
        object.__setattr__(self, "high_latitude", parse_high_latitude(self.high_latitude))
        offsets = tuple(float(v) for v in (self.offsets or ()))
        if len(offsets) != 6:
            raise ValueError(f"Offsets must have 6 values (one per prayer), got {len(offsets)}")
        object.__setattr__(self, "offsets", offsets)

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]]) -> "CalculationAttribute":
        """Build from a 'calculation' config section; missing keys use defaults."""
        config = config or {}
        offsets: Iterable[float] = config.get("offsets") or (0, 0, 0, 0, 0, 0)
        return cls(
            method=config.get("method", CalculationMethod.MAKKAH),
            asr_method=config.get("asr_method", AsrMethod.SHAFII),
            high_latitude=config.get("high_latitude", HighLatitudeMethod.ANGLE_BASED),
            offsets=tuple(offsets),
        )
