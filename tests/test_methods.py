import pytest

from prayer_engine.prayer.methods import (
    METHOD_PARAMS,
    AsrMethod,
    CalculationAttribute,
    CalculationMethod,
    HighLatitudeMethod,
    get_method_params,
    parse_asr_method,
    parse_high_latitude,
    parse_method,
)


def test_every_method_has_parameters():
    assert set(METHOD_PARAMS) == set(CalculationMethod)


def test_makkah_isha_is_ninety_minutes_after_maghrib():
    params = get_method_params(CalculationMethod.MAKKAH)
    assert params.fajr_angle == 18.5
    assert params.isha_is_minutes == 1
    assert params.isha_value == 90.0


def test_jafari_maghrib_is_an_angle():
    params = get_method_params("jafari")
    assert params.maghrib_is_minutes == 0
    assert params.maghrib_value == 4.0


def test_custom_parameters_override_custom_row_only():
    custom = get_method_params(CalculationMethod.CUSTOM, [17, 1, 3, 0, 16])
    assert custom.fajr_angle == 17.0
    assert custom.maghrib_value == 3.0
    assert get_method_params(CalculationMethod.MWL, [17, 1, 3, 0, 16]) == METHOD_PARAMS[CalculationMethod.MWL]


def test_custom_parameters_need_five_values():
    with pytest.raises(ValueError):
        get_method_params(CalculationMethod.CUSTOM, [17, 1, 3])


def test_parse_method_is_case_insensitive():
    assert parse_method(" MWL ") is CalculationMethod.MWL
    with pytest.raises(ValueError, match="Unknown calculation method"):
        parse_method("moonsighting")


@pytest.mark.parametrize("value, expected", [
    ("shafii", AsrMethod.SHAFII),
    ("Hanafi", AsrMethod.HANAFI),
    (1, AsrMethod.HANAFI),
    ("0", AsrMethod.SHAFII),
])
def test_parse_asr_method(value, expected):
    assert parse_asr_method(value) is expected


def test_parse_asr_method_rejects_unknown():
    with pytest.raises(ValueError):
        parse_asr_method("maliki")
    with pytest.raises(ValueError):
        parse_asr_method(2)


@pytest.mark.parametrize("value, expected", [
    ("angleBased", HighLatitudeMethod.ANGLE_BASED),
    ("midnight", HighLatitudeMethod.MID_NIGHT),
    ("one_seventh", HighLatitudeMethod.ONE_SEVENTH),
    ("none", HighLatitudeMethod.NONE),
])
def test_parse_high_latitude(value, expected):
    assert parse_high_latitude(value) is expected


def test_parse_high_latitude_rejects_unknown():
    with pytest.raises(ValueError):
        parse_high_latitude("twilight")


def test_attribute_defaults():
    attribute = CalculationAttribute()
    assert attribute.method is CalculationMethod.MAKKAH
    assert attribute.asr_method is AsrMethod.SHAFII
    assert attribute.high_latitude is HighLatitudeMethod.ANGLE_BASED
    assert attribute.offsets == (0.0,) * 6


def test_attribute_coerces_strings_and_is_hashable():
    a = CalculationAttribute("mwl", "hanafi", "midNight", [1, 0, 0, 0, 2, 0])
    b = CalculationAttribute(CalculationMethod.MWL, AsrMethod.HANAFI, HighLatitudeMethod.MID_NIGHT, (1, 0, 0, 0, 2, 0))
    assert a == b
    assert hash(a) == hash(b)


def test_attribute_requires_six_offsets():
    with pytest.raises(ValueError, match="6 values"):
        CalculationAttribute(offsets=(0, 0, 0))


def test_attribute_from_config_uses_defaults_for_missing_keys():
    attribute = CalculationAttribute.from_config({"method": "egypt"})
    assert attribute.method is CalculationMethod.EGYPT
    assert attribute.asr_method is AsrMethod.SHAFII
    assert CalculationAttribute.from_config(None) == CalculationAttribute()
