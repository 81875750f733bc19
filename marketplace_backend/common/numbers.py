# common/numbers.py

"""
Quantity + money normalizers shared by cart, inventory and checkout.

Hard rules:
- Quantities are whole units.
- Money is Decimal, 2 places, ROUND_HALF_UP. Never float.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from common.errors import InvalidQuantityError

TWOPLACES = Decimal("0.01")


def money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def to_whole_qty(value, *, field_name: str = "quantity") -> int:
    if isinstance(value, bool) or value is None or value == "":
        raise InvalidQuantityError(f"{field_name} must be a whole number")

    try:
        qty = int(value)
    except (TypeError, ValueError):
        raise InvalidQuantityError(f"{field_name} must be a whole number")

    if qty != value and str(qty) != str(value).strip():
        raise InvalidQuantityError(f"{field_name} must be a whole number")

    return qty


def to_positive_qty(value, *, field_name: str = "quantity") -> int:
    qty = to_whole_qty(value, field_name=field_name)
    if qty <= 0:
        raise InvalidQuantityError(f"{field_name} must be at least 1")
    return qty
