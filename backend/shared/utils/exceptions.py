"""
Centralized HTTP exceptions for consistent error handling.

Domain services raise these directly; FastAPI renders them as JSON
responses with the matching status code, and in-process callers can catch
them by type and read the structured attributes.

Usage:
    from shared.utils.exceptions import NotFoundError, ValidationError

    raise NotFoundError("Producto", product_id, business_id=business_id)
    raise ValidationError("El pedido debe tener al menos un producto")
    raise InsufficientStockError("Hamburguesa", available=2, requested=3)
"""

from decimal import Decimal
from typing import Any

from fastapi import HTTPException, status

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All custom exceptions inherit from this class
    to ensure consistent logging and response format.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found, or outside the caller's business (404).

    Cross-tenant lookups raise this too, so a guessed id never reveals
    whether the row exists for another business.

    Usage:
        raise NotFoundError("Insumo", 123)
        raise NotFoundError("Pedido", order_id, business_id=business_id)
    """

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        if entity_id is not None:
            detail = f"{entity} con ID {entity_id} no encontrado"
        else:
            detail = f"{entity} no encontrado"

        self.entity = entity
        self.entity_id = entity_id

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            log_level="warning",
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (400).

    Usage:
        raise ValidationError("La cantidad debe ser mayor a cero")
        raise ValidationError("Cantidad inválida", field="quantity", value=-1)
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class InvalidTransitionError(ValidationError):
    """Invalid status transition."""

    def __init__(self, entity: str, from_status: str, to_status: str, **log_context: Any):
        detail = f"Transición inválida de '{from_status}' a '{to_status}' para {entity}"
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(detail, entity=entity, from_status=from_status, to_status=to_status, **log_context)


# =============================================================================
# 409 Business Rule Errors
# =============================================================================


class InsufficientStockError(AppException):
    """
    Not enough stock to fulfil a request (409).

    This is a business-rule violation, distinct from malformed input.

    Usage:
        raise InsufficientStockError("Hamburguesa", available=2, requested=3)
    """

    def __init__(
        self,
        item: str,
        available: int | Decimal,
        requested: int | Decimal,
        **log_context: Any,
    ):
        detail = (
            f"Stock insuficiente para {item}. "
            f"Disponible: {available}, solicitado: {requested}"
        )
        self.item = item
        self.available = available
        self.requested = requested

        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            log_level="warning",
            item=item,
            available=available,
            requested=requested,
            **log_context,
        )


# =============================================================================
# 500 Internal Server Errors
# =============================================================================


class PersistenceError(AppException):
    """
    Storage or transaction failure (500). The transaction is always rolled back.

    The driver detail is logged by the caller, never put in the response.

    Usage:
        raise PersistenceError("registrar movimiento", ingredient_id=12)
    """

    def __init__(self, operation: str, **log_context: Any):
        detail = f"Error de base de datos durante {operation}. Por favor intente de nuevo."
        self.operation = operation
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            log_level="error",
            operation=operation,
            **log_context,
        )
