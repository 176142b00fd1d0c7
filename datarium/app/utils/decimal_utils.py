"""
Decimal helpers for Datarium.

Monetary values (asset value, price per unit, daily change) are kept as
Decimal end to end; these helpers centralise conversion and percentage math.

Usage:
    from datarium.app.utils.decimal_utils import parse_decimal_value, percentage_of

    parse_decimal_value("1000.50")          # Decimal("1000.50")
    percentage_of(Decimal("250"), Decimal("1000"))  # Decimal("25.00")
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def parse_decimal_value(value) -> Optional[Decimal]:
    """
    Convert input to Decimal safely.

    Floats go through str() so 0.1 becomes Decimal("0.1") and not its
    binary expansion.

    Args:
        value: Input value (Decimal, int, float, str, or None)

    Returns:
        Decimal or None
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return None
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None


def percentage_of(part: Decimal, whole: Decimal) -> Decimal:
    """
    Return part / whole * 100, or 0 when whole is zero.

    Examples:
        >>> percentage_of(Decimal("1"), Decimal("4"))
        Decimal('25.00')
        >>> percentage_of(Decimal("5"), Decimal("0"))
        Decimal('0')
    """
    if whole == ZERO:
        return ZERO
    return part / whole * HUNDRED


def quantize_money(value: Decimal, places: int = 2) -> Decimal:
    """Round a monetary amount for display (half-up)."""
    return value.quantize(Decimal(10) ** -places, rounding=ROUND_HALF_UP)
