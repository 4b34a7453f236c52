from decimal import Decimal

import pytest

from domain.common.exceptions import InvalidAmountException
from domain.payment.money import to_decimal, to_major_units, to_minor_units, validate_major_amount


@pytest.mark.parametrize(
    "major, minor",
    [
        ("0.01", 1),
        ("12.34", 1234),
        ("100.00", 10000),
        ("999999.99", 99999999),
    ],
)
def test_major_minor_round_trip(major, minor):
    assert to_minor_units(Decimal(major)) == minor
    assert to_major_units(minor) == Decimal(major)


def test_float_input_does_not_drift():
    # 12.34 * 100 is 1233.9999999999998 in binary floating point
    assert to_minor_units(to_decimal(12.34)) == 1234
    assert to_minor_units(to_decimal(999999.99)) == 99999999


@pytest.mark.parametrize(
    "major, minor",
    [
        ("0.005", 1),
        ("0.015", 2),
        ("2.675", 268),
        ("1.004", 100),
    ],
)
def test_rounds_half_up(major, minor):
    assert to_minor_units(Decimal(major)) == minor


def test_exponent_zero_currency():
    assert to_minor_units(Decimal("100.5"), exponent=0) == 101
    assert to_major_units(101, exponent=0) == Decimal("101")


@pytest.mark.parametrize("amount", [0, -1, Decimal("-0.01"), "NaN", Decimal("Infinity"), True, None, "abc"])
def test_rejects_invalid_amounts(amount):
    with pytest.raises(InvalidAmountException):
        validate_major_amount(amount)


def test_amount_bounds():
    assert validate_major_amount("10", min_amount=Decimal("1"), max_amount=Decimal("10")) == Decimal("10")
    with pytest.raises(InvalidAmountException):
        validate_major_amount("0.50", min_amount=Decimal("1"))
    with pytest.raises(InvalidAmountException):
        validate_major_amount("10.01", max_amount=Decimal("10"))
