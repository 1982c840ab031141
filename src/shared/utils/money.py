from decimal import ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Union


def round_money(value: Union[Decimal, float, int, str]) -> Decimal:
    """
    Round monetary value to 2 decimal places using ROUND_HALF_UP.

    Examples:
        >>> round_money(10.125)
        Decimal('10.13')
        >>> round_money(10.124)
        Decimal('10.12')
        >>> round_money("10.115")
        Decimal('10.12')
    """
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    if value < 0:
        return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_DOWN)
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def to_money(value: Any) -> Decimal:
    """
    Coerce a loosely typed backend value to Decimal.

    None, empty strings, booleans and anything non-numeric become Decimal("0").
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, Decimal):
        return value if value.is_finite() else Decimal("0")
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")
    return result if result.is_finite() else Decimal("0")


def format_currency(value: Union[Decimal, float, int, None], currency: str = "BDT") -> str:
    """
    Format amount with thousands separator and 2 decimals.

    Examples:
        >>> format_currency(Decimal("1234.5"))
        'BDT 1,234.50'
        >>> format_currency(-20, "USD")
        '-USD 20.00'
    """
    amount = round_money(to_money(value))
    sign = "-" if amount < 0 else ""
    return f"{sign}{currency} {abs(amount):,.2f}"
