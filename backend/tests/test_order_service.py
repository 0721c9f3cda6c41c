"""
Tests for OrderService: atomic placement, cancellation and status flow.
"""

from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from pos_core.models import Order, OrderItem
from pos_core.services.domain import OrderService
from shared.config.constants import OrderStatus
from shared.utils.exceptions import (
    InsufficientStockError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from shared.utils.schemas import OrderCreateRequest, OrderItemInput


def _request(*lines, **kwargs) -> OrderCreateRequest:
    return OrderCreateRequest(
        items=[OrderItemInput(product_id=pid, quantity=qty) for pid, qty in lines],
        **kwargs,
    )


def _count(db_session, model) -> int:
    return db_session.scalar(select(func.count()).select_from(model))


class TestCreateOrder:
    """Placement inserts the order, snapshots prices and deducts stock."""

    def test_create_deducts_stock_and_totals(self, db_session, make_product):
        burger = make_product(name="Hamburguesa", price="10.00", stock=10)
        soda = make_product(name="Bebida", price="2.50", stock=5)

        order = OrderService(db_session).create_order(
            1, _request((burger.id, 2), (soda.id, 3), order_type="llevar")
        )

        assert order.status == OrderStatus.REGISTRADO
        assert order.total == Decimal("27.50")
        assert order.order_type == "llevar"
        assert order.payment_method == "efectivo"
        assert [(i.product_id, i.quantity, i.unit_price, i.subtotal) for i in order.items] == [
            (burger.id, 2, Decimal("10.00"), Decimal("20.00")),
            (soda.id, 3, Decimal("2.50"), Decimal("7.50")),
        ]
        assert order.items[0].product.name == "Hamburguesa"
        db_session.refresh(burger)
        db_session.refresh(soda)
        assert burger.stock == 8
        assert soda.stock == 2

    def test_price_snapshot_survives_price_change(self, db_session, seed_product):
        service = OrderService(db_session)
        order = service.create_order(1, _request((seed_product.id, 1)))

        seed_product.price = Decimal("99.00")
        db_session.commit()

        reloaded = service.get_order(1, order.id)
        assert reloaded.items[0].unit_price == Decimal("10.00")
        assert reloaded.total == Decimal("10.00")

    def test_failed_second_line_rolls_back_everything(self, db_session, make_product):
        """A two-line order whose second line lacks stock leaves nothing behind."""
        burger = make_product(name="Hamburguesa", stock=10)
        soda = make_product(name="Bebida", price="2.50", stock=1)

        with pytest.raises(InsufficientStockError) as exc_info:
            OrderService(db_session).create_order(1, _request((burger.id, 2), (soda.id, 2)))
        db_session.rollback()

        assert exc_info.value.status_code == 409
        assert exc_info.value.item == "Bebida"
        assert exc_info.value.available == 1
        assert exc_info.value.requested == 2
        db_session.refresh(burger)
        db_session.refresh(soda)
        assert burger.stock == 10
        assert soda.stock == 1
        assert _count(db_session, Order) == 0
        assert _count(db_session, OrderItem) == 0

    def test_repeated_product_quantities_are_summed(self, db_session, make_product):
        burger = make_product(name="Hamburguesa", stock=3)

        with pytest.raises(InsufficientStockError) as exc_info:
            OrderService(db_session).create_order(1, _request((burger.id, 2), (burger.id, 2)))

        assert exc_info.value.requested == 4

    def test_exact_stock_allowed(self, db_session, make_product):
        burger = make_product(name="Hamburguesa", stock=2)
        OrderService(db_session).create_order(1, _request((burger.id, 2)))
        db_session.refresh(burger)
        assert burger.stock == 0

    def test_empty_order_rejected(self, db_session, seed_business):
        with pytest.raises(ValidationError):
            OrderService(db_session).create_order(1, OrderCreateRequest(items=[]))

    def test_inactive_product_not_found(self, db_session, make_product):
        retired = make_product(name="Retirado", is_active=False)
        with pytest.raises(NotFoundError):
            OrderService(db_session).create_order(1, _request((retired.id, 1)))

    def test_cross_tenant_product_not_found(self, db_session, make_product, other_business):
        foreign = make_product(name="Completo", business_id=other_business.id, stock=10)

        with pytest.raises(NotFoundError):
            OrderService(db_session).create_order(1, _request((foreign.id, 1)))
        db_session.rollback()

        db_session.refresh(foreign)
        assert foreign.stock == 10

    def test_customer_hydrated(self, db_session, seed_product, seed_customer):
        order = OrderService(db_session).create_order(
            1, _request((seed_product.id, 1), customer_id=seed_customer.id)
        )
        assert order.customer.name == "Ana Pérez"

    def test_cross_tenant_customer_not_found(self, db_session, seed_product, other_business):
        from pos_core.models import Customer

        stranger = Customer(business_id=other_business.id, name="Extraño")
        db_session.add(stranger)
        db_session.commit()

        with pytest.raises(NotFoundError):
            OrderService(db_session).create_order(1, _request((seed_product.id, 1), customer_id=stranger.id))

    def test_commit_failure_raises_persistence_error(self, db_session, seed_product):
        with patch.object(
            db_session, "commit", side_effect=OperationalError("COMMIT", {}, Exception("lost connection"))
        ):
            with pytest.raises(PersistenceError):
                OrderService(db_session).create_order(1, _request((seed_product.id, 3)))

        db_session.refresh(seed_product)
        assert seed_product.stock == 10
        assert _count(db_session, Order) == 0


class TestCancelOrder:
    """Cancellation restores stock exactly once."""

    def test_cancel_restores_stock(self, db_session, make_product):
        burger = make_product(name="Hamburguesa", stock=10)
        service = OrderService(db_session)
        order = service.create_order(1, _request((burger.id, 3), (burger.id, 1)))

        cancelled = service.cancel_order(1, order.id)

        assert cancelled.status == OrderStatus.CANCELADO
        db_session.refresh(burger)
        assert burger.stock == 10

    def test_double_cancel_rejected(self, db_session, seed_product):
        service = OrderService(db_session)
        order = service.create_order(1, _request((seed_product.id, 4)))
        service.cancel_order(1, order.id)

        with pytest.raises(InvalidTransitionError):
            service.cancel_order(1, order.id)
        db_session.rollback()

        db_session.refresh(seed_product)
        assert seed_product.stock == 10

    def test_cancel_delivered_order(self, db_session, seed_product):
        service = OrderService(db_session)
        order = service.create_order(1, _request((seed_product.id, 2)))
        service.update_status(1, order.id, OrderStatus.ENTREGADO)

        service.cancel_order(1, order.id)

        db_session.refresh(seed_product)
        assert seed_product.stock == 10

    def test_cancel_restocks_soft_deleted_product(self, db_session, seed_product):
        service = OrderService(db_session)
        order = service.create_order(1, _request((seed_product.id, 2)))
        seed_product.is_active = False
        db_session.commit()

        service.cancel_order(1, order.id)

        db_session.refresh(seed_product)
        assert seed_product.stock == 10

    def test_unresolvable_product_leaves_no_partial_restock(self, db_session, make_product, other_business):
        burger = make_product(name="Hamburguesa", stock=10)
        soda = make_product(name="Bebida", price="2.50", stock=10)
        service = OrderService(db_session)
        order = service.create_order(1, _request((burger.id, 2), (soda.id, 1)))
        soda.business_id = other_business.id
        db_session.commit()

        with pytest.raises(NotFoundError):
            service.cancel_order(1, order.id)

        assert burger not in db_session.dirty
        assert burger.stock == 8
        db_session.rollback()
        assert service.get_order(1, order.id).status == OrderStatus.REGISTRADO

    def test_cross_tenant_cancel_not_found(self, db_session, make_product, other_business):
        foreign_product = make_product(name="Completo", business_id=other_business.id)
        order = OrderService(db_session).create_order(other_business.id, _request((foreign_product.id, 1)))

        with pytest.raises(NotFoundError):
            OrderService(db_session).cancel_order(1, order.id)


class TestStatusFlow:
    """Transitions follow ORDER_TRANSITIONS."""

    def test_registrado_to_completado(self, db_session, seed_product):
        service = OrderService(db_session)
        order = service.create_order(1, _request((seed_product.id, 1)))

        updated = service.update_status(1, order.id, OrderStatus.COMPLETADO)

        assert updated.status == OrderStatus.COMPLETADO

    def test_completado_to_entregado_rejected(self, db_session, seed_product):
        service = OrderService(db_session)
        order = service.create_order(1, _request((seed_product.id, 1)))
        service.update_status(1, order.id, OrderStatus.COMPLETADO)

        with pytest.raises(InvalidTransitionError):
            service.update_status(1, order.id, OrderStatus.ENTREGADO)

    def test_back_to_registrado_rejected(self, db_session, seed_product):
        service = OrderService(db_session)
        order = service.create_order(1, _request((seed_product.id, 1)))

        with pytest.raises(InvalidTransitionError):
            service.update_status(1, order.id, OrderStatus.REGISTRADO)

    def test_status_cancelado_restores_stock(self, db_session, seed_product):
        service = OrderService(db_session)
        order = service.create_order(1, _request((seed_product.id, 5)))

        service.update_status(1, order.id, OrderStatus.CANCELADO)

        db_session.refresh(seed_product)
        assert seed_product.stock == 10

    def test_unknown_status_rejected(self, db_session, seed_product):
        service = OrderService(db_session)
        order = service.create_order(1, _request((seed_product.id, 1)))
        with pytest.raises(ValidationError):
            service.update_status(1, order.id, "perdido")


class TestOrderReads:

    def test_list_orders_filters_and_isolation(self, db_session, make_product, other_business):
        burger = make_product(name="Hamburguesa", stock=50)
        foreign = make_product(name="Completo", business_id=other_business.id, stock=50)
        service = OrderService(db_session)
        first = service.create_order(1, _request((burger.id, 1)))
        second = service.create_order(1, _request((burger.id, 1), order_type="domicilio"))
        service.create_order(other_business.id, _request((foreign.id, 1)))
        service.cancel_order(1, first.id)

        assert [o.id for o in service.list_orders(1)] == [second.id, first.id]
        assert [o.id for o in service.list_orders(1, status=OrderStatus.CANCELADO)] == [first.id]
        assert [o.id for o in service.list_orders(1, order_type="domicilio")] == [second.id]
        assert [o.id for o in service.list_orders(1, limit=1)] == [second.id]

    def test_get_order_cross_tenant_not_found(self, db_session, make_product, other_business):
        foreign = make_product(name="Completo", business_id=other_business.id)
        order = OrderService(db_session).create_order(other_business.id, _request((foreign.id, 1)))

        with pytest.raises(NotFoundError):
            OrderService(db_session).get_order(1, order.id)
