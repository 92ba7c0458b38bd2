"""
Module: profit_kernel.db.types
Responsibility: Annotated type aliases and utility functions for financial-grade
    column types.  Centralizes precision, rounding, and Decimal coercion so
    that every model, engine, and service uses identical definitions.
Architecture position: Kernel > DB.  May be imported by engines, modules and
    services.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats anywhere in the financial model.  Amounts, rates, hours and
      percentages are Decimal with explicit precision.
    - round_money() / round_percent() are the only sanctioned rounding
      functions; engines return exact values and callers round for display.

Failure modes:
    - InvalidFieldValueError from to_decimal() on non-numeric input.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from profit_kernel.exceptions import InvalidFieldValueError

ZERO = Decimal("0")
HUNDRED = Decimal("100")

MONEY_DECIMAL_PLACES = 2
PERCENT_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP


def to_decimal(value: Any, field: str = "value") -> Decimal:
    """
    Coerce a payload value to Decimal.

    Strings and ints convert exactly; floats go through ``str()`` so that
    ``0.1`` becomes ``Decimal("0.1")`` rather than its binary expansion.

    Raises:
        InvalidFieldValueError: if value is None, bool, or not numeric.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise InvalidFieldValueError(field, value, "decimal")
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidFieldValueError(field, value, "decimal") from None
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        raise InvalidFieldValueError(field, value, "decimal")

    if not result.is_finite():
        raise InvalidFieldValueError(field, value, "finite decimal")
    return result


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to specified decimal places.

    Args:
        value: The Decimal value to round.
        decimal_places: Number of decimal places to round to.
        rounding: Rounding mode (default: ROUND_HALF_UP).
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places > 0 else "1"
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def round_percent(
    value: Decimal,
    decimal_places: int = PERCENT_DECIMAL_PLACES,
) -> Decimal:
    """Round a percentage for presentation."""
    return round_money(value, decimal_places)
