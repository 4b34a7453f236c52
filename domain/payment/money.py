"""
Exact conversion between major currency units (Decimal) and integer minor units.
"""
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

from domain.common.exceptions import InvalidAmountException


DEFAULT_EXPONENT = 2


def to_decimal(amount: object) -> Decimal:
    """Coerce ``amount`` to Decimal without binary float drift."""
    if isinstance(amount, Decimal):
        return amount
    if isinstance(amount, bool):
        raise InvalidAmountException(amount, "amount must be a number")
    if isinstance(amount, (int, str)):
        value = amount
    elif isinstance(amount, float):
        # repr() of a float is the shortest string that round-trips, e.g. 12.34 -> "12.34"
        value = repr(amount)
    else:
        raise InvalidAmountException(amount, "amount must be a number")
    try:
        return Decimal(value)
    except (InvalidOperation, ValueError) as exc:
        raise InvalidAmountException(amount, "amount must be a number") from exc


def validate_major_amount(
    amount: object,
    *,
    min_amount: Decimal | None = None,
    max_amount: Decimal | None = None,
) -> Decimal:
    """Return ``amount`` as a positive finite Decimal or raise InvalidAmountException."""
    value = to_decimal(amount)
    if not value.is_finite():
        raise InvalidAmountException(amount, "amount must be finite")
    if value <= 0:
        raise InvalidAmountException(amount, "amount must be greater than 0")
    if min_amount is not None and value < min_amount:
        raise InvalidAmountException(amount, f"amount must be at least {min_amount}")
    if max_amount is not None and value > max_amount:
        raise InvalidAmountException(amount, f"amount must be at most {max_amount}")
    return value


def to_minor_units(amount: Decimal, exponent: int = DEFAULT_EXPONENT) -> int:
    """Major -> minor units, rounding half-up to the nearest minor unit.

    >>> to_minor_units(Decimal("12.34"))
    1234
    >>> to_minor_units(Decimal("0.005"))
    1
    """
    scaled = to_decimal(amount).scaleb(exponent)
    return int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def to_major_units(amount_minor: int, exponent: int = DEFAULT_EXPONENT) -> Decimal:
    """Minor -> major units with exactly ``exponent`` decimal places.

    >>> to_major_units(1234)
    Decimal('12.34')
    """
    quantum = Decimal(1).scaleb(-exponent)
    return Decimal(int(amount_minor)).scaleb(-exponent).quantize(quantum)
