"""
Shared Pydantic schemas used across the application.

Amounts are Decimal everywhere. Output schemas read ORM rows through
from_attributes where the shape matches one-to-one.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from shared.config.constants import Limits


# =============================================================================
# Common Types
# =============================================================================

MovementTypeLiteral = Literal["entrada", "salida", "ajuste"]
DiscountTypeLiteral = Literal["percentage", "fixed"]
DiscountScopeLiteral = Literal["all", "category", "product"]
OrderStatusLiteral = Literal["registrado", "completado", "entregado", "cancelado"]
PaymentMethodLiteral = Literal["efectivo", "tarjeta", "transferencia"]
OrderTypeLiteral = Literal["comer", "llevar", "domicilio"]


# =============================================================================
# Inventory Schemas
# =============================================================================


class MovementCreate(BaseModel):
    """
    Request to record one inventory movement.

    quantity must be > 0 for entrada/salida; ajuste accepts 0 (an empty
    shelf after a physical count). The service enforces that split.
    """

    ingredient_id: int
    type: MovementTypeLiteral
    quantity: Decimal = Field(ge=0, decimal_places=3)
    unit_cost: Decimal | None = Field(default=None, ge=0, decimal_places=4)
    reason: str | None = Field(default=None, max_length=Limits.MAX_REASON_LENGTH)
    notes: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)


class MovementOutput(BaseModel):
    """A recorded ledger entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    ingredient_id: int
    type: str
    quantity: Decimal
    unit_cost: Decimal | None = None
    reason: str | None = None
    notes: str | None = None
    user_id: int | None = None
    created_at: datetime


class IngredientCreate(BaseModel):
    """
    Request to create an ingredient.

    A non-zero opening stock is booked as an opening entrada at
    cost_per_unit, so the movement log always explains the stock.
    """

    name: str = Field(min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    unit: str = Field(default="unidad", max_length=50)
    stock: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=3)
    min_stock: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=3)
    cost_per_unit: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=4)
    notes: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)


class IngredientOutput(BaseModel):
    """Ingredient with its materialized stock and weighted-average cost."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    unit: str
    stock: Decimal
    min_stock: Decimal
    cost_per_unit: Decimal
    is_active: bool


# =============================================================================
# Recipe Schemas
# =============================================================================


class IngredientComponent(BaseModel):
    """Product recipe line pointing at an ingredient."""

    item_type: Literal["ingredient"] = "ingredient"
    item_id: int
    quantity: Decimal = Field(gt=0, decimal_places=3)


class PreparationComponent(BaseModel):
    """Product recipe line pointing at a preparation."""

    item_type: Literal["preparation"] = "preparation"
    item_id: int
    quantity: Decimal = Field(gt=0, decimal_places=3)


# Tagged variant: item_type selects which table item_id refers to.
RecipeComponent = Annotated[
    Union[IngredientComponent, PreparationComponent],
    Field(discriminator="item_type"),
]


class PreparationCreate(BaseModel):
    """
    New preparation. Its cost starts at zero and is derived once its
    ingredients are saved.
    """

    name: str = Field(min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    unit: str = Field(default="porción", max_length=50)
    yield_quantity: Decimal = Field(decimal_places=3)
    notes: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)


class PreparationItemInput(BaseModel):
    """Ingredient consumed by one batch of a preparation."""

    ingredient_id: int
    quantity: Decimal = Field(gt=0, decimal_places=3)


class PreparationRecipeRequest(BaseModel):
    """Full replacement of a preparation's item set."""

    items: list[PreparationItemInput] = Field(default_factory=list)


class PreparationItemOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ingredient_id: int
    quantity: Decimal


class PreparationOutput(BaseModel):
    """Preparation with its derived cost per unit."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    unit: str
    yield_quantity: Decimal
    cost_per_unit: Decimal
    items: list[PreparationItemOutput] = Field(default_factory=list)


class ProductRecipeRequest(BaseModel):
    """Full replacement of a product's recipe."""

    items: list[RecipeComponent] = Field(default_factory=list)


class RecipeLine(BaseModel):
    """
    Recipe line enriched with the resolved component.

    line_cost = cost_per_unit * quantity, rounded to the unit-cost scale.
    """

    id: int
    item_type: Literal["ingredient", "preparation"]
    item_id: int
    quantity: Decimal
    name: str
    unit: str
    cost_per_unit: Decimal
    line_cost: Decimal


class ProductCost(BaseModel):
    """Rolled-up product cost against its selling price."""

    product_id: int
    price: Decimal
    cost: Decimal
    margin: Decimal
    lines: list[RecipeLine] = Field(default_factory=list)


# =============================================================================
# Discount Schemas
# =============================================================================


class DiscountCreate(BaseModel):
    """Request to create a discount rule."""

    name: str = Field(min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    type: DiscountTypeLiteral
    value: Decimal = Field(ge=0, decimal_places=2)
    applies_to: DiscountScopeLiteral = "all"
    target_id: int | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


class DiscountOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: str
    value: Decimal
    applies_to: str
    target_id: int | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_active: bool


class DiscountCalculateRequest(BaseModel):
    """Amount to price, plus the optional product/category context."""

    amount: Decimal = Field(decimal_places=2)
    product_id: int | None = None
    category_id: int | None = None


class DiscountResolution(BaseModel):
    """
    Outcome of discount resolution.

    When no discount matches, applied is False, discount is None and
    final_amount equals original_amount.
    """

    applied: bool
    discount: DiscountOutput | None = None
    original_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal


# =============================================================================
# Combo Schemas
# =============================================================================


class ComboCreate(BaseModel):
    name: str = Field(min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    description: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)
    price: Decimal = Field(decimal_places=2)


class ComboItemInput(BaseModel):
    product_id: int
    quantity: int = Field(default=1, ge=1, le=Limits.MAX_ORDER_QUANTITY)


class ComboItemsRequest(BaseModel):
    """Full replacement of a combo's item set."""

    items: list[ComboItemInput] = Field(default_factory=list)


class ComboItemOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: int
    quantity: int


class ComboOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price: Decimal
    original_price: Decimal | None = None
    items: list[ComboItemOutput] = Field(default_factory=list)


class ComboPricing(BaseModel):
    """
    Reference pricing for a combo.

    savings = original_price - price; cost rolls up the recipes of the
    combo's products.
    """

    combo_id: int
    price: Decimal
    original_price: Decimal
    savings: Decimal
    cost: Decimal


# =============================================================================
# Order Schemas
# =============================================================================


class OrderItemInput(BaseModel):
    """Input for a single line of an order."""

    product_id: int
    quantity: int = Field(ge=Limits.MIN_ORDER_QUANTITY, le=Limits.MAX_ORDER_QUANTITY)
    notes: str | None = Field(default=None, max_length=Limits.MAX_REASON_LENGTH)


class OrderCreateRequest(BaseModel):
    """
    Request to place an order.

    An empty items list is rejected by OrderService with a 400.
    """

    items: list[OrderItemInput] = Field(default_factory=list, max_length=Limits.MAX_ORDER_LINES)
    customer_id: int | None = None
    customer_temp_info: str | None = Field(default=None, max_length=Limits.MAX_REASON_LENGTH)
    payment_method: PaymentMethodLiteral = "efectivo"
    order_type: OrderTypeLiteral = "comer"
    reference: str | None = Field(default=None, max_length=Limits.MAX_REASON_LENGTH)
    delivery_address: str | None = Field(default=None, max_length=Limits.MAX_REASON_LENGTH)
    maps_link: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)
    notes: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)


class OrderStatusUpdate(BaseModel):
    status: OrderStatusLiteral


class CustomerSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    phone: str | None = None
    address: str | None = None


class OrderItemOutput(BaseModel):
    """Order line with price snapshots."""

    id: int
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    notes: str | None = None


class OrderOutput(BaseModel):
    """Order hydrated with its lines and customer."""

    id: int
    status: OrderStatusLiteral
    total: Decimal
    payment_method: str
    order_type: str
    customer_id: int | None = None
    customer: CustomerSummary | None = None
    customer_temp_info: str | None = None
    reference: str | None = None
    delivery_address: str | None = None
    maps_link: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime | None = None
    items: list[OrderItemOutput] = Field(default_factory=list)


# =============================================================================
# Error Schemas
# =============================================================================


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
    code: str | None = None
