"""
Offer Models: Discount, Combo, ComboItem.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, IdType

if TYPE_CHECKING:
    from .catalog import Product


class Discount(AuditMixin, Base):
    """
    Discount rule resolved at sale time.

    - type: percentage (value is 0-100) or fixed (value is subtracted)
    - applies_to: all, category or product; target_id names the
      category/product and is NULL for "all"
    - start_date/end_date: validity window; both NULL means always valid
    """

    __tablename__ = "discount"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    business_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("business.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    value: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    applies_to: Mapped[str] = mapped_column(Text, nullable=False, default="all")
    target_id: Mapped[Optional[int]] = mapped_column(BigInteger)
    start_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        CheckConstraint("type IN ('percentage', 'fixed')", name="chk_discount_type"),
        CheckConstraint("applies_to IN ('all', 'category', 'product')", name="chk_discount_applies_to"),
        CheckConstraint(
            "(applies_to = 'all' AND target_id IS NULL) OR (applies_to <> 'all' AND target_id IS NOT NULL)",
            name="chk_discount_target",
        ),
        CheckConstraint("value >= 0", name="chk_discount_value_positive"),
        Index("ix_discount_business_scope", "business_id", "applies_to", "target_id"),
    )


class Combo(AuditMixin, Base):
    """
    Bundle of products sold at a set price.
    original_price is the sum of component prices at the time the item
    set was last saved (a snapshot, not live).
    """

    __tablename__ = "combo"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    business_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("business.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    original_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))

    items: Mapped[list["ComboItem"]] = relationship(
        back_populates="combo", cascade="all, delete-orphan", order_by="ComboItem.id"
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="chk_combo_price_positive"),
    )


class ComboItem(Base):
    """A product and its quantity inside a combo."""

    __tablename__ = "combo_item"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    combo_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("combo.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("product.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    combo: Mapped["Combo"] = relationship(back_populates="items")
    product: Mapped["Product"] = relationship()

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_combo_item_quantity_positive"),
    )
