"""
Inventory Models: Ingredient, Preparation, PreparationItem, InventoryMovement.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, IdType


class Ingredient(AuditMixin, Base):
    """
    Raw stock item with a moving weighted-average unit cost.

    stock and cost_per_unit are a materialized view of the ingredient's
    InventoryMovement log; only InventoryService writes them.
    """

    __tablename__ = "ingredient"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    business_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("business.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    unit: Mapped[str] = mapped_column(Text, nullable=False, default="unidad")
    stock: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=Decimal("0"))
    min_stock: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=Decimal("0"))
    cost_per_unit: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False, default=Decimal("0"))
    notes: Mapped[Optional[str]] = mapped_column(Text)

    movements: Mapped[list["InventoryMovement"]] = relationship(
        back_populates="ingredient", order_by="InventoryMovement.id"
    )

    __table_args__ = (
        CheckConstraint("min_stock >= 0", name="chk_ingredient_min_stock_positive"),
        CheckConstraint("cost_per_unit >= 0", name="chk_ingredient_cost_positive"),
    )


class Preparation(AuditMixin, Base):
    """
    Sub-recipe produced in batches (e.g. a sauce or a dough).
    cost_per_unit is derived from its items and yield_quantity and is
    recomputed every time the item set is saved.
    """

    __tablename__ = "preparation"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    business_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("business.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    unit: Mapped[str] = mapped_column(Text, nullable=False, default="porción")
    yield_quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)  # Amount produced per batch
    stock: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=Decimal("0"))
    cost_per_unit: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False, default=Decimal("0"))
    notes: Mapped[Optional[str]] = mapped_column(Text)

    items: Mapped[list["PreparationItem"]] = relationship(
        back_populates="preparation", cascade="all, delete-orphan", order_by="PreparationItem.id"
    )

    __table_args__ = (
        CheckConstraint("yield_quantity > 0", name="chk_preparation_yield_positive"),
        CheckConstraint("cost_per_unit >= 0", name="chk_preparation_cost_positive"),
    )


class PreparationItem(Base):
    """
    Recipe edge: an ingredient consumed by one batch of a preparation.
    No audit fields; the whole set is replaced on each recipe save.
    """

    __tablename__ = "preparation_item"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    preparation_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("preparation.id", ondelete="CASCADE"), nullable=False, index=True
    )
    ingredient_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("ingredient.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)

    preparation: Mapped["Preparation"] = relationship(back_populates="items")
    ingredient: Mapped["Ingredient"] = relationship()

    __table_args__ = (
        UniqueConstraint("preparation_id", "ingredient_id", name="uq_preparation_ingredient"),
        CheckConstraint("quantity > 0", name="chk_preparation_item_quantity_positive"),
    )


class InventoryMovement(Base):
    """
    One immutable ledger entry changing an ingredient's stock.

    - entrada: stock in; unit_cost (optional) feeds the weighted average
    - salida: stock out
    - ajuste: absolute correction, stock becomes `quantity`

    Rows are inserted by InventoryService and never updated or deleted.
    """

    __tablename__ = "inventory_movement"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    business_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("business.id"), nullable=False, index=True
    )
    ingredient_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("ingredient.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(Text, nullable=False)  # entrada, salida, ajuste
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    unit_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 4))  # Only for entrada
    reason: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    user_id: Mapped[Optional[int]] = mapped_column(BigInteger)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    ingredient: Mapped["Ingredient"] = relationship(back_populates="movements")

    __table_args__ = (
        CheckConstraint("type IN ('entrada', 'salida', 'ajuste')", name="chk_movement_type"),
        CheckConstraint("quantity >= 0", name="chk_movement_quantity_positive"),
        CheckConstraint(
            "unit_cost IS NULL OR (type = 'entrada' AND unit_cost >= 0)",
            name="chk_movement_unit_cost_entrada",
        ),
        Index("ix_inventory_movement_ingredient_id_id", "ingredient_id", "id"),
    )
