"""
Fixed-point helpers for money, quantities and unit costs.

All amounts are decimal.Decimal end to end; floats are rejected so that
weighted-average costing never accumulates binary rounding drift.

Usage:
    from shared.utils.money import to_decimal, quantize_money, quantize_cost

    subtotal = quantize_money(unit_price * quantity)
    cost = quantize_cost(total_value / new_stock)
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from shared.config.constants import Precision

ZERO = Decimal("0")


def to_decimal(value: Decimal | int | str | None, default: Decimal = ZERO) -> Decimal:
    """
    Convert a DB/API value to Decimal.

    None maps to `default`. Floats are refused: callers must pass strings
    or Decimals for fractional values.

    Raises:
        ValueError: If the value is a float or not a valid number.
    """
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        raise ValueError("Los montos deben ser decimales exactos, no float")
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Valor numérico inválido: {value!r}") from e


def quantize_money(value: Decimal) -> Decimal:
    """Round to cents."""
    return value.quantize(Precision.MONEY, rounding=ROUND_HALF_UP)


def quantize_quantity(value: Decimal) -> Decimal:
    """Round to the stock quantity scale (thousandths)."""
    return value.quantize(Precision.QUANTITY, rounding=ROUND_HALF_UP)


def quantize_cost(value: Decimal) -> Decimal:
    """Round to the unit-cost scale (ten-thousandths)."""
    return value.quantize(Precision.UNIT_COST, rounding=ROUND_HALF_UP)
