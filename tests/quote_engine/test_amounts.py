import pytest

from quote_engine.amounts import format_units, parse_units
from quote_engine.errors import InvalidAmountError


@pytest.mark.parametrize(
    "raw, decimals, expected",
    [
        (".5", 18, 500000000000000000),
        ("0.5", 18, 500000000000000000),
        ("1", 6, 1000000),
        ("1.000001", 6, 1000001),
        ("6657.448327629289764808", 18, 6657448327629289764808),
        ("42", 0, 42),
        ("0", 18, 0),
        (" 3.25 ", 2, 325),
    ],
)
def test_parse_units(raw, decimals, expected):
    assert parse_units(raw, decimals) == expected


def test_parse_units_keeps_huge_values_exact():
    raw = "123456789012345678901234567890.123456789012345678"
    assert parse_units(raw, 18) == 123456789012345678901234567890123456789012345678


@pytest.mark.parametrize("raw", ["abc", "", "-1", "NaN", "Infinity", "1.5.2"])
def test_parse_units_rejects_invalid(raw):
    with pytest.raises(InvalidAmountError):
        parse_units(raw, 18)


def test_parse_units_rejects_excess_precision():
    with pytest.raises(InvalidAmountError):
        parse_units("1.0000001", 6)
    with pytest.raises(InvalidAmountError):
        parse_units("1.5", 0)


def test_parse_units_allows_trailing_zeros_beyond_decimals():
    assert parse_units("1.500000", 1) == 15


def test_invalid_amount_is_a_value_error():
    with pytest.raises(ValueError):
        parse_units("-0.1", 18)


def test_format_units():
    assert format_units(500000000000000000, 18) == "0.5"
    assert format_units(499999999999793729, 18) == "0.499999999999793729"
    assert format_units(41312691160507030, 18) == "0.04131269116050703"
    assert format_units(100 * 10 ** 18, 18) == "100"
    assert format_units(0, 18) == "0"
    assert format_units(1, 6) == "0.000001"
