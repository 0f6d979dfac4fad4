# blackgold/domain/money.py
from decimal import Decimal, InvalidOperation
from typing import Union

Amount = Union[int, float, str, Decimal]


def to_cents(amount: Amount) -> int:
    """
    Convert a dollar amount to integer cents.

    Raises:
        ValueError: If the amount is not a finite number of whole cents
    """
    try:
        value = Decimal(str(amount)) * 100
    except InvalidOperation as e:
        raise ValueError(f"Not a monetary amount: {amount!r}") from e

    if not value.is_finite() or value != value.to_integral_value():
        raise ValueError(f"Amount {amount!r} is not a whole number of cents")

    return int(value)


def from_cents(cents: int) -> float:
    return cents / 100
