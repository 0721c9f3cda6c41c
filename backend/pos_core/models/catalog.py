"""
Catalog Models: Category, Product, ProductRecipe.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Integer, Numeric, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, IdType


class Category(AuditMixin, Base):
    """Product category. Also a target for category-level discounts."""

    __tablename__ = "category"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    business_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("business.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)

    products: Mapped[list["Product"]] = relationship(back_populates="category")


class Product(AuditMixin, Base):
    """
    Sellable item. price is set by the business independently of cost;
    stock (units on hand) only changes through OrderService.
    """

    __tablename__ = "product"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    business_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("business.id"), nullable=False, index=True
    )
    category_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("category.id"), index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    category: Mapped[Optional["Category"]] = relationship(back_populates="products")
    recipe_items: Mapped[list["ProductRecipe"]] = relationship(
        back_populates="product", cascade="all, delete-orphan", order_by="ProductRecipe.id"
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="chk_product_price_positive"),
        CheckConstraint("stock >= 0", name="chk_product_stock_positive"),
    )


class ProductRecipe(Base):
    """
    Polymorphic recipe edge: item_type says whether item_id points at an
    Ingredient or a Preparation. quantity is a multiplier of the
    component's cost_per_unit.
    """

    __tablename__ = "product_recipe"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    product_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("product.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_type: Mapped[str] = mapped_column(Text, nullable=False)  # ingredient, preparation
    item_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)

    product: Mapped["Product"] = relationship(back_populates="recipe_items")

    __table_args__ = (
        UniqueConstraint("product_id", "item_type", "item_id", name="uq_product_recipe_item"),
        CheckConstraint("item_type IN ('ingredient', 'preparation')", name="chk_product_recipe_item_type"),
        CheckConstraint("quantity > 0", name="chk_product_recipe_quantity_positive"),
    )
