"""
Centralized constants for the backend application.
Avoid magic strings and repeated constants.

Usage:
    from shared.config.constants import MovementType, OrderStatus, ORDER_TRANSITIONS

    if movement.type == MovementType.ENTRADA:
        ...

    if new_status not in ORDER_TRANSITIONS[order.status]:
        ...
"""

from decimal import Decimal
from typing import Final


# =============================================================================
# Inventory
# =============================================================================


class MovementType:
    """Inventory movement types (ingredient ledger)."""

    ENTRADA: Final[str] = "entrada"  # Stock in (purchase, production)
    SALIDA: Final[str] = "salida"  # Stock out (consumption, waste)
    AJUSTE: Final[str] = "ajuste"  # Absolute correction after a physical count

    ALL: Final[list[str]] = [ENTRADA, SALIDA, AJUSTE]


OPENING_MOVEMENT_REASON: Final[str] = "Stock inicial"


class RecipeItemType:
    """Component kinds allowed in a product recipe."""

    INGREDIENT: Final[str] = "ingredient"
    PREPARATION: Final[str] = "preparation"

    ALL: Final[list[str]] = [INGREDIENT, PREPARATION]


# =============================================================================
# Discounts
# =============================================================================


class DiscountType:
    """How a discount value is interpreted."""

    PERCENTAGE: Final[str] = "percentage"
    FIXED: Final[str] = "fixed"

    ALL: Final[list[str]] = [PERCENTAGE, FIXED]


class DiscountScope:
    """What a discount applies to, in resolution priority order."""

    PRODUCT: Final[str] = "product"
    CATEGORY: Final[str] = "category"
    ALL_ITEMS: Final[str] = "all"

    ALL: Final[list[str]] = [PRODUCT, CATEGORY, ALL_ITEMS]
    TARGETED: Final[frozenset[str]] = frozenset({PRODUCT, CATEGORY})


# =============================================================================
# Orders
# =============================================================================


class OrderStatus:
    """Order status constants."""

    REGISTRADO: Final[str] = "registrado"
    COMPLETADO: Final[str] = "completado"
    ENTREGADO: Final[str] = "entregado"
    CANCELADO: Final[str] = "cancelado"

    ALL: Final[list[str]] = [REGISTRADO, COMPLETADO, ENTREGADO, CANCELADO]


# Allowed status moves. Cancelado is terminal and reachable only once.
ORDER_TRANSITIONS: Final[dict[str, frozenset[str]]] = {
    OrderStatus.REGISTRADO: frozenset(
        {OrderStatus.COMPLETADO, OrderStatus.ENTREGADO, OrderStatus.CANCELADO}
    ),
    OrderStatus.COMPLETADO: frozenset({OrderStatus.CANCELADO}),
    OrderStatus.ENTREGADO: frozenset({OrderStatus.CANCELADO}),
    OrderStatus.CANCELADO: frozenset(),
}


class PaymentMethod:
    """Payment method constants."""

    EFECTIVO: Final[str] = "efectivo"
    TARJETA: Final[str] = "tarjeta"
    TRANSFERENCIA: Final[str] = "transferencia"

    ALL: Final[list[str]] = [EFECTIVO, TARJETA, TRANSFERENCIA]


class OrderType:
    """Order type constants."""

    COMER: Final[str] = "comer"  # Dine in
    LLEVAR: Final[str] = "llevar"  # Take away
    DOMICILIO: Final[str] = "domicilio"  # Delivery

    ALL: Final[list[str]] = [COMER, LLEVAR, DOMICILIO]


# =============================================================================
# Numeric precision
# =============================================================================


class Precision:
    """Decimal scales used for persisted amounts."""

    MONEY: Final[Decimal] = Decimal("0.01")
    QUANTITY: Final[Decimal] = Decimal("0.001")
    UNIT_COST: Final[Decimal] = Decimal("0.0001")


# =============================================================================
# Validation Limits
# =============================================================================


class Limits:
    """Validation limits."""

    # Order lines
    MIN_ORDER_QUANTITY: Final[int] = 1
    MAX_ORDER_QUANTITY: Final[int] = 999
    MAX_ORDER_LINES: Final[int] = 100

    # Percentage discounts
    MIN_PERCENTAGE: Final[Decimal] = Decimal("0")
    MAX_PERCENTAGE: Final[Decimal] = Decimal("100")

    # String lengths
    MAX_NAME_LENGTH: Final[int] = 200
    MAX_REASON_LENGTH: Final[int] = 255
    MAX_NOTES_LENGTH: Final[int] = 2000

    # Pagination defaults
    DEFAULT_PAGE_SIZE: Final[int] = 50
    MAX_PAGE_SIZE: Final[int] = 200
    MAX_MOVEMENTS_PAGE: Final[int] = 500
