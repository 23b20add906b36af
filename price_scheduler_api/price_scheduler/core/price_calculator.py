"""
Price calculation utilities for bulk price adjustments.
"""
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

ADJUST_TYPES = ("increase", "decrease")
AMOUNT_TYPES = ("percentage", "fixed")
ROUNDING_MODES = ("none", "nearest_whole", "down_whole", "up_99")

_CENT = Decimal("0.01")
_WHOLE = Decimal("1")


def to_number(value: Any, fallback: float = 0.0) -> float:
    """
    Coerce a price-like value (number or numeric string) to float.

    Returns fallback for None, unparseable strings, NaN and infinities.
    """
    if isinstance(value, bool):
        return fallback
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(number):
        return fallback
    return number


def _quantize(value: float, step: Decimal) -> float:
    # str() keeps the shortest repr so 1.005 rounds half-up to 1.01
    return float(Decimal(str(value)).quantize(step, rounding=ROUND_HALF_UP))


def round_price(value: Any, rounding: str = "none") -> float:
    """
    Apply a rounding mode to a price.

    Args:
        value: Price to round
        rounding: "none" (cents, half-up), "nearest_whole", "down_whole" or
            "up_99" (whole part + .99)

    Returns:
        Rounded price
    """
    v = to_number(value, 0.0)

    if rounding == "nearest_whole":
        return _quantize(v, _WHOLE)

    if rounding == "down_whole":
        return float(math.floor(v))

    if rounding == "up_99":
        # 10.01 -> 10.99, 10.99 -> 10.99, 10.00 -> 10.99
        return _quantize(math.floor(v) + 0.99, _CENT)

    return _quantize(v, _CENT)


def compute_price(
    old_price: Any,
    adjust_type: str,
    amount_type: str,
    percentage: Optional[float] = None,
    fixed_amount: Optional[float] = None,
    rounding: str = "none"
) -> float:
    """
    Calculate new price based on current price and adjustment parameters.

    Args:
        old_price: Current price (number or numeric string, invalid -> 0)
        adjust_type: "increase" or "decrease"
        amount_type: "percentage" or "fixed"
        percentage: Percentage 0..100 (used when amount_type is percentage)
        fixed_amount: Amount >= 0 (used when amount_type is fixed)
        rounding: Rounding mode applied last

    Returns:
        New price (always >= 0)
    """
    old_value = to_number(old_price, 0.0)

    if amount_type == "percentage":
        delta = old_value * (to_number(percentage, 0.0) / 100)
    else:
        delta = to_number(fixed_amount, 0.0)

    if adjust_type == "increase":
        new_price = old_value + delta
    else:
        new_price = old_value - delta

    # Ensure price is not negative
    new_price = max(0.0, new_price)

    return round_price(new_price, rounding)


def validate_adjustment(
    adjust_type: Any,
    amount_type: Any,
    percentage: Any = None,
    fixed_amount: Any = None,
    rounding: Any = "none"
) -> Optional[str]:
    """
    Check an adjustment spec.

    Returns:
        Human-readable reason for the first problem found, or None if valid.
    """
    if adjust_type not in ADJUST_TYPES:
        return "Invalid adjustType (use increase/decrease)"
    if amount_type not in AMOUNT_TYPES:
        return "Invalid amountType (use percentage/fixed)"

    if amount_type == "percentage":
        pct = to_number(percentage, math.nan)
        if math.isnan(pct):
            return "percentage is required"
        if pct < 0 or pct > 100:
            return "percentage must be between 0 and 100"

    if amount_type == "fixed":
        amount = to_number(fixed_amount, math.nan)
        if math.isnan(amount):
            return "fixedAmount is required"
        if amount < 0:
            return "fixedAmount must be >= 0"

    if (rounding or "none") not in ROUNDING_MODES:
        return "Invalid rounding option"

    return None
