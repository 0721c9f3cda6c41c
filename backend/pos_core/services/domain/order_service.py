"""
Order Domain Service.

Places and cancels orders. Both are single transactions that move
product stock together with the order rows:

- create: validate → lock products (ascending id) → insert order and
  lines with price snapshots → decrement stock → commit
- cancel: lock order → lock products → restore stock → mark cancelado

Status moves follow ORDER_TRANSITIONS; cancelado is terminal, so an order
can only restock once.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Sequence

from sqlalchemy.orm import Session, selectinload

from shared.config.constants import ORDER_TRANSITIONS, Limits, OrderStatus, OrderType, PaymentMethod
from shared.config.logging import orders_logger as logger
from shared.utils.exceptions import (
    InsufficientStockError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from shared.utils.money import ZERO, quantize_money, to_decimal
from shared.utils.schemas import OrderCreateRequest
from pos_core.models import Customer, Order, OrderItem, Product
from pos_core.repositories import TenantRepository
from pos_core.services.base_service import DomainService

ORDER_LOAD_OPTIONS = [
    selectinload(Order.items).selectinload(OrderItem.product),
    selectinload(Order.customer),
]


class OrderService(DomainService):
    """
    Domain service for the order lifecycle.

    The only writer of Product.stock.
    """

    def __init__(self, db: Session):
        super().__init__(db)
        self._orders = TenantRepository(Order, db)
        self._products = TenantRepository(Product, db)
        self._customers = TenantRepository(Customer, db)

    # =========================================================================
    # Reads
    # =========================================================================

    def get_order(self, business_id: int, order_id: int) -> Order:
        """Order with its lines, line products and customer."""
        order = self._orders.find_by_id(order_id, business_id, options=ORDER_LOAD_OPTIONS)
        if not order:
            raise NotFoundError("Pedido", order_id, business_id=business_id)
        return order

    def list_orders(
        self,
        business_id: int,
        status: str | None = None,
        order_type: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        limit: int | None = None,
    ) -> Sequence[Order]:
        """Orders of the business, newest first."""
        filters = []
        if status is not None:
            if status not in OrderStatus.ALL:
                raise ValidationError(f"Estado inválido: {status}", field="status")
            filters.append(Order.status == status)
        if order_type is not None:
            if order_type not in OrderType.ALL:
                raise ValidationError(f"Tipo de pedido inválido: {order_type}", field="order_type")
            filters.append(Order.order_type == order_type)
        if date_from is not None:
            filters.append(Order.created_at >= date_from)
        if date_to is not None:
            filters.append(Order.created_at <= date_to)

        if limit is None:
            limit = Limits.DEFAULT_PAGE_SIZE
        limit = max(1, min(limit, Limits.MAX_PAGE_SIZE))

        return self._orders.find_all(
            business_id,
            filters=filters,
            options=ORDER_LOAD_OPTIONS,
            order_by=Order.id.desc(),
            limit=limit,
        )

    # =========================================================================
    # Create
    # =========================================================================

    def create_order(self, business_id: int, request: OrderCreateRequest) -> Order:
        """
        Place an order and deduct product stock atomically.

        Quantities of repeated products are summed before checking stock.
        Nothing is written until every line has been validated.

        Raises:
            ValidationError: No lines, or a bad quantity or enum value.
            NotFoundError: Customer or product missing, inactive or in
                another business.
            InsufficientStockError: A product has less stock than requested.
            PersistenceError: Storage failure (rolled back).
        """
        if not request.items:
            raise ValidationError("El pedido debe tener al menos un producto")
        if len(request.items) > Limits.MAX_ORDER_LINES:
            raise ValidationError(
                f"El pedido no puede tener más de {Limits.MAX_ORDER_LINES} líneas"
            )
        for item in request.items:
            if not Limits.MIN_ORDER_QUANTITY <= item.quantity <= Limits.MAX_ORDER_QUANTITY:
                raise ValidationError(
                    "Cantidad inválida",
                    field="quantity",
                    product_id=item.product_id,
                    value=item.quantity,
                )
        if request.payment_method not in PaymentMethod.ALL:
            raise ValidationError(f"Método de pago inválido: {request.payment_method}")
        if request.order_type not in OrderType.ALL:
            raise ValidationError(f"Tipo de pedido inválido: {request.order_type}")

        if request.customer_id is not None:
            customer = self._customers.find_by_id(request.customer_id, business_id)
            if not customer:
                raise NotFoundError("Cliente", request.customer_id, business_id=business_id)

        requested = Counter()
        for item in request.items:
            requested[item.product_id] += item.quantity

        products = self._products.find_by_ids(
            sorted(requested), business_id, for_update=True
        )
        for product_id in sorted(requested):
            product = products.get(product_id)
            if product is None:
                raise NotFoundError("Producto", product_id, business_id=business_id)
            if product.stock < requested[product_id]:
                raise InsufficientStockError(
                    product.name,
                    available=product.stock,
                    requested=requested[product_id],
                    product_id=product.id,
                    business_id=business_id,
                )

        order = Order(
            business_id=business_id,
            customer_id=request.customer_id,
            customer_temp_info=request.customer_temp_info,
            status=OrderStatus.REGISTRADO,
            payment_method=request.payment_method,
            order_type=request.order_type,
            reference=request.reference,
            delivery_address=request.delivery_address,
            maps_link=request.maps_link,
            notes=request.notes,
        )

        total = ZERO
        for item in request.items:
            product = products[item.product_id]
            unit_price = quantize_money(to_decimal(product.price))
            subtotal = quantize_money(unit_price * item.quantity)
            order.items.append(
                OrderItem(
                    product_id=product.id,
                    quantity=item.quantity,
                    unit_price=unit_price,
                    subtotal=subtotal,
                    notes=item.notes,
                )
            )
            total += subtotal

        for product_id, quantity in requested.items():
            products[product_id].stock -= quantity

        order.total = quantize_money(total)
        self._orders.add(order)
        self._commit("crear pedido", business_id=business_id)

        logger.info(
            "Order created",
            business_id=business_id,
            order_id=order.id,
            items=len(request.items),
            total=str(order.total),
        )
        return self.get_order(business_id, order.id)

    # =========================================================================
    # Status changes
    # =========================================================================

    def cancel_order(self, business_id: int, order_id: int) -> Order:
        """
        Cancel an order and return its quantities to product stock.

        Raises:
            NotFoundError: Order missing or in another business.
            InvalidTransitionError: The order is already cancelled.
            PersistenceError: Storage failure (rolled back).
        """
        order = self._orders.find_by_id(
            order_id,
            business_id,
            options=[selectinload(Order.items)],
            for_update=True,
        )
        if not order:
            raise NotFoundError("Pedido", order_id, business_id=business_id)

        if OrderStatus.CANCELADO not in ORDER_TRANSITIONS.get(order.status, frozenset()):
            raise InvalidTransitionError(
                "Pedido",
                order.status,
                OrderStatus.CANCELADO,
                order_id=order.id,
                business_id=business_id,
            )

        returned = Counter()
        for item in order.items:
            returned[item.product_id] += item.quantity

        # Soft-deleted products still get their units back
        products = self._products.find_by_ids(
            sorted(returned), business_id, include_inactive=True, for_update=True
        )
        missing = [product_id for product_id in sorted(returned) if product_id not in products]
        if missing:
            raise NotFoundError("Producto", missing[0], business_id=business_id, order_id=order.id)

        for product_id, quantity in returned.items():
            products[product_id].stock += quantity

        order.status = OrderStatus.CANCELADO
        self._commit("cancelar pedido", order_id=order.id, business_id=business_id)

        logger.info(
            "Order cancelled",
            business_id=business_id,
            order_id=order.id,
            restocked_products=len(returned),
        )
        return self.get_order(business_id, order.id)

    def update_status(self, business_id: int, order_id: int, status: str) -> Order:
        """
        Move an order to another status along ORDER_TRANSITIONS.

        Moving to cancelado goes through cancel_order so stock is restored.

        Raises:
            ValidationError: Unknown status.
            InvalidTransitionError: The move is not allowed from the current status.
            NotFoundError: Order missing or in another business.
        """
        if status not in OrderStatus.ALL:
            raise ValidationError(f"Estado inválido: {status}", field="status")

        if status == OrderStatus.CANCELADO:
            return self.cancel_order(business_id, order_id)

        order = self._orders.find_by_id(order_id, business_id, for_update=True)
        if not order:
            raise NotFoundError("Pedido", order_id, business_id=business_id)

        if status not in ORDER_TRANSITIONS.get(order.status, frozenset()):
            raise InvalidTransitionError(
                "Pedido", order.status, status, order_id=order.id, business_id=business_id
            )

        previous = order.status
        order.status = status
        self._commit("actualizar estado de pedido", order_id=order.id, business_id=business_id)

        logger.info(
            "Order status updated",
            business_id=business_id,
            order_id=order.id,
            from_status=previous,
            to_status=status,
        )
        return self.get_order(business_id, order.id)
