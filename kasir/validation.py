# kasir/validation.py
import math
from decimal import Decimal
from typing import Any, Optional

from .errors import ExceedsStock, NonPositive, NotNumeric, ValidationError
from .result import Err, Ok, Result

# upper bound for prices and payments; totals stay inside the decimal context
MAX_AMOUNT = Decimal("1e15")


def as_int(value: Any) -> Optional[int]:
    # bool is an int subclass but never a quantity
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        return None
    if isinstance(value, Decimal):
        if value.is_finite() and value == value.to_integral_value():
            return int(value)
        return None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def validate_quantity(requested: Any, available: int) -> Result[int, ValidationError]:
    """Check a requested quantity against the stock currently available.

    Returns the quantity unchanged on success; nothing is clamped.
    """
    quantity = as_int(requested)
    if quantity is None:
        return Err(NotNumeric(requested))
    if quantity <= 0:
        return Err(NonPositive(quantity))
    if quantity > available:
        return Err(ExceedsStock(quantity, available))
    return Ok(quantity)
