"""Decimal arithmetic helpers"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional


def to_decimal(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """
    Convert a numeric value to Decimal without float artifacts.

    Args:
        value: int, float, str or Decimal
        default: Returned when value is None

    Returns:
        Decimal value, or default when value is None
    """
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_decimal(value: Decimal, decimal_places: int = 2) -> Decimal:
    """
    Round a decimal value to specified decimal places.

    Args:
        value: Decimal value to round
        decimal_places: Number of decimal places (default 2)

    Returns:
        Rounded decimal value
    """
    quantize_value = Decimal(10) ** -decimal_places
    return value.quantize(quantize_value, rounding=ROUND_HALF_UP)


def sum_decimals(values: list[Decimal]) -> Decimal:
    """
    Sum a list of decimal values.

    Args:
        values: List of decimal values

    Returns:
        Sum of all values
    """
    return sum(values, Decimal("0"))


def exceeds_precision(value: Decimal, decimal_places: int = 2) -> bool:
    """
    Check whether a value carries more decimal places than allowed.

    Trailing zeros don't count, so 10.500 fits in 2 places.

    Args:
        value: Finite decimal value
        decimal_places: Allowed number of decimal places

    Returns:
        True if value has significant digits beyond decimal_places
    """
    return value.normalize().as_tuple().exponent < -decimal_places
