"""
Utilities module: Exceptions, money helpers, schemas.
"""

from shared.utils.exceptions import (
    NotFoundError,
    ValidationError,
    InvalidTransitionError,
    InsufficientStockError,
    PersistenceError,
)
from shared.utils.money import to_decimal, quantize_money, quantize_quantity, quantize_cost
from shared.utils.schemas import ErrorResponse

__all__ = [
    # exceptions
    "NotFoundError",
    "ValidationError",
    "InvalidTransitionError",
    "InsufficientStockError",
    "PersistenceError",
    # money
    "to_decimal",
    "quantize_money",
    "quantize_quantity",
    "quantize_cost",
    # schemas
    "ErrorResponse",
]
