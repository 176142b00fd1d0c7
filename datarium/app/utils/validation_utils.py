"""
Validation utilities for Pydantic models.

Provides reusable validator functions shared by the input schemas
(asset creation, credentials).
"""
from decimal import Decimal
from typing import Optional


def validate_required_text(value: Optional[str], field_name: str) -> str:
    """
    Trim a required text field and reject blank input.

    Raises:
        ValueError: If the value is None, empty or whitespace-only
    """
    if value is None or not str(value).strip():
        raise ValueError(f"{field_name} cannot be empty")
    return str(value).strip()


def validate_positive_amount(value: Optional[Decimal], field_name: str) -> Decimal:
    """
    Ensure a monetary amount is present and strictly positive.

    Raises:
        ValueError: If the value is missing, zero or negative
    """
    if value is None:
        raise ValueError(f"{field_name} is required")
    if value <= 0:
        raise ValueError(f"{field_name} must be a positive number")
    return value


def validate_price_per_unit(
    asset_type: str,
    price_per_unit: Optional[Decimal],
    field_name: str = "pricePerUnit"
    ) -> Optional[Decimal]:
    """
    Validate the per-unit price against the asset type.

    Ensures that:
    - stocks require a positive price per unit
    - every other type carries no price per unit (dropped if given)

    Args:
        asset_type: Asset type value ("fixedIncome", "stocks", "funds", "others")
        price_per_unit: Price per unit, if provided
        field_name: Name of the price field (for error messages)

    Returns:
        The validated price for stocks, None for every other type

    Examples:
        >>> validate_price_per_unit("stocks", Decimal("32.5"))
        Decimal('32.5')
        >>> validate_price_per_unit("funds", Decimal("10"))  # None
        >>> validate_price_per_unit("stocks", None)  # ValueError
    """
    if asset_type != "stocks":
        return None
    if price_per_unit is None:
        raise ValueError(f"{field_name} is required for stocks")
    if price_per_unit <= 0:
        raise ValueError(f"{field_name} must be a positive number")
    return price_per_unit
