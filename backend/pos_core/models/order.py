"""
Order Models: Customer, Order, OrderItem.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Index, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, IdType

if TYPE_CHECKING:
    from .catalog import Product


class Customer(AuditMixin, Base):
    """
    Registered customer. Managed outside the core; orders only reference it.
    """

    __tablename__ = "customer"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    business_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("business.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(Text)
    address: Mapped[Optional[str]] = mapped_column(Text)

    orders: Mapped[list["Order"]] = relationship(back_populates="customer")


class Order(AuditMixin, Base):
    """
    A placed order.

    Status flow (see shared.config.constants.ORDER_TRANSITIONS):
    registrado -> completado | entregado | cancelado
    completado | entregado -> cancelado
    """

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    business_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("business.id"), nullable=False, index=True
    )
    customer_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("customer.id"), index=True
    )
    customer_temp_info: Mapped[Optional[str]] = mapped_column(Text)  # Walk-in name/phone
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(Text, nullable=False, default="registrado", index=True)
    payment_method: Mapped[str] = mapped_column(Text, nullable=False, default="efectivo")
    order_type: Mapped[str] = mapped_column(Text, nullable=False, default="comer")
    reference: Mapped[Optional[str]] = mapped_column(Text)
    delivery_address: Mapped[Optional[str]] = mapped_column(Text)
    maps_link: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    customer: Mapped[Optional["Customer"]] = relationship(back_populates="orders")
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id"
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('registrado', 'completado', 'entregado', 'cancelado')",
            name="chk_order_status",
        ),
        CheckConstraint(
            "payment_method IN ('efectivo', 'tarjeta', 'transferencia')",
            name="chk_order_payment_method",
        ),
        CheckConstraint("order_type IN ('comer', 'llevar', 'domicilio')", name="chk_order_type"),
        CheckConstraint("total >= 0", name="chk_order_total_positive"),
        Index("ix_orders_business_status", "business_id", "status"),
    )


class OrderItem(Base):
    """
    Order line. unit_price and subtotal are snapshots taken when the order
    was placed; later product price changes never touch them.
    """

    __tablename__ = "order_item"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("product.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    order: Mapped["Order"] = relationship(back_populates="items")
    product: Mapped["Product"] = relationship()

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_order_item_quantity_positive"),
    )
