"""
Inventory Domain Service.

Owns the ingredient ledger: every stock change is an append-only
InventoryMovement, and Ingredient.stock / Ingredient.cost_per_unit are the
running result of folding those movements in id order.

Costing uses a moving weighted average. An entrada with a unit cost moves
the cost toward that price in proportion to the quantity received; salida
and ajuste never change the cost.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Protocol, Sequence

from sqlalchemy.orm import Session

from shared.config.constants import Limits, MovementType, OPENING_MOVEMENT_REASON
from shared.config.logging import inventory_logger as logger
from shared.config.settings import settings
from shared.utils.exceptions import InsufficientStockError, NotFoundError, ValidationError
from shared.utils.money import ZERO, quantize_cost, quantize_quantity, to_decimal
from shared.utils.schemas import IngredientCreate
from pos_core.models import Ingredient, InventoryMovement
from pos_core.repositories import TenantRepository
from pos_core.services.base_service import DomainService


@dataclass(frozen=True, slots=True)
class StockState:
    """Stock and weighted-average unit cost of one ingredient."""

    stock: Decimal
    cost_per_unit: Decimal


class MovementLike(Protocol):
    type: str
    quantity: Decimal
    unit_cost: Decimal | None


EMPTY_STOCK = StockState(stock=ZERO, cost_per_unit=ZERO)


def apply_movement(
    state: StockState,
    movement_type: str,
    quantity: Decimal,
    unit_cost: Decimal | None = None,
) -> StockState:
    """
    Apply one movement to a stock state and return the new state.

    - entrada: stock += quantity; with a unit_cost the cost becomes the
      weighted average of the units on hand and the incoming units. Stock
      at or below zero carries no value, so the incoming price wins.
    - salida: stock -= quantity (may go negative; callers enforce policy)
    - ajuste: stock = quantity

    Pure function: no I/O, no policy checks.
    """
    if movement_type == MovementType.ENTRADA:
        new_stock = quantize_quantity(state.stock + quantity)
        if unit_cost is None:
            return StockState(new_stock, state.cost_per_unit)
        on_hand = max(state.stock, ZERO)
        weight = on_hand + quantity
        if weight <= 0:
            return StockState(new_stock, quantize_cost(unit_cost))
        total_value = on_hand * state.cost_per_unit + quantity * unit_cost
        return StockState(new_stock, quantize_cost(total_value / weight))

    elif movement_type == MovementType.SALIDA:
        return StockState(quantize_quantity(state.stock - quantity), state.cost_per_unit)

    elif movement_type == MovementType.AJUSTE:
        return StockState(quantize_quantity(quantity), state.cost_per_unit)

    raise ValueError(f"Tipo de movimiento desconocido: {movement_type!r}")


def replay_movements(movements: Iterable[MovementLike]) -> StockState:
    """
    Fold movements (oldest first) starting from zero stock and zero cost.

    For any ingredient whose whole history went through InventoryService,
    the result equals the stored stock and cost_per_unit.
    """
    state = EMPTY_STOCK
    for movement in movements:
        state = apply_movement(
            state,
            movement.type,
            to_decimal(movement.quantity),
            to_decimal(movement.unit_cost) if movement.unit_cost is not None else None,
        )
    return state


class InventoryService(DomainService):
    """
    Domain service for the ingredient ledger.

    The only writer of Ingredient.stock and Ingredient.cost_per_unit.
    """

    def __init__(self, db: Session, allow_negative_stock: bool | None = None):
        super().__init__(db)
        self._ingredients = TenantRepository(Ingredient, db)
        self._movements = TenantRepository(InventoryMovement, db)
        if allow_negative_stock is None:
            allow_negative_stock = settings.allow_negative_ingredient_stock
        self._allow_negative_stock = allow_negative_stock

    # =========================================================================
    # Validation
    # =========================================================================

    @staticmethod
    def _validate_movement(
        movement_type: str,
        quantity: Decimal | int | str,
        unit_cost: Decimal | int | str | None,
    ) -> tuple[Decimal, Decimal | None]:
        """Normalize amounts and check them against the movement type."""
        if movement_type not in MovementType.ALL:
            raise ValidationError(
                f"Tipo de movimiento inválido: {movement_type}",
                field="type",
                value=movement_type,
            )

        try:
            qty = to_decimal(quantity)
            cost = to_decimal(unit_cost) if unit_cost is not None else None
        except ValueError as e:
            raise ValidationError(str(e)) from e

        # Checked at stored precision: 0.0004 would be booked as 0.000
        stored_qty = quantize_quantity(qty)
        if qty < 0 or (stored_qty == 0 and movement_type != MovementType.AJUSTE):
            raise ValidationError(
                "La cantidad debe ser mayor a cero",
                field="quantity",
                value=str(qty),
            )

        if cost is not None:
            if movement_type != MovementType.ENTRADA:
                raise ValidationError(
                    "Solo las entradas pueden registrar costo unitario",
                    field="unit_cost",
                    movement_type=movement_type,
                )
            if cost < 0:
                raise ValidationError(
                    "El costo unitario no puede ser negativo",
                    field="unit_cost",
                    value=str(cost),
                )

        return stored_qty, quantize_cost(cost) if cost is not None else None

    # =========================================================================
    # Ledger writes
    # =========================================================================

    def record_movement(
        self,
        business_id: int,
        ingredient_id: int,
        movement_type: str,
        quantity: Decimal | int | str,
        unit_cost: Decimal | int | str | None = None,
        reason: str | None = None,
        notes: str | None = None,
        user_id: int | None = None,
    ) -> InventoryMovement:
        """
        Append a movement and update the ingredient in the same transaction.

        The ingredient row is locked for the read-compute-write sequence.

        Raises:
            ValidationError: Bad type, quantity or unit_cost.
            NotFoundError: Ingredient missing, inactive or in another business.
            InsufficientStockError: salida below zero with the policy off.
            PersistenceError: Storage failure (rolled back).
        """
        qty, cost = self._validate_movement(movement_type, quantity, unit_cost)

        ingredient = self._ingredients.find_by_id(ingredient_id, business_id, for_update=True)
        if not ingredient:
            raise NotFoundError("Insumo", ingredient_id, business_id=business_id)

        current = StockState(to_decimal(ingredient.stock), to_decimal(ingredient.cost_per_unit))
        new_state = apply_movement(current, movement_type, qty, cost)

        if (
            movement_type == MovementType.SALIDA
            and new_state.stock < 0
            and not self._allow_negative_stock
        ):
            raise InsufficientStockError(
                ingredient.name,
                available=current.stock,
                requested=qty,
                ingredient_id=ingredient.id,
                business_id=business_id,
            )

        movement = InventoryMovement(
            business_id=business_id,
            ingredient_id=ingredient.id,
            type=movement_type,
            quantity=qty,
            unit_cost=cost,
            reason=reason,
            notes=notes,
            user_id=user_id,
        )
        self._movements.add(movement)
        ingredient.stock = new_state.stock
        ingredient.cost_per_unit = new_state.cost_per_unit

        self._commit("registrar movimiento", ingredient_id=ingredient.id, business_id=business_id)
        self._db.refresh(movement)

        logger.info(
            "Inventory movement recorded",
            business_id=business_id,
            ingredient_id=ingredient.id,
            movement_id=movement.id,
            type=movement_type,
            quantity=str(qty),
            stock=str(new_state.stock),
            cost_per_unit=str(new_state.cost_per_unit),
        )
        return movement

    def create_ingredient(
        self,
        business_id: int,
        data: IngredientCreate,
        user_id: int | None = None,
    ) -> Ingredient:
        """
        Create an ingredient.

        Opening stock is booked as an entrada at the given cost, so the
        ledger explains the ingredient from its first row. A cost with no
        stock has nothing to value and is rejected.
        """
        opening_stock = quantize_quantity(data.stock)
        opening_cost = quantize_cost(data.cost_per_unit)
        if opening_stock == 0 and opening_cost != 0:
            raise ValidationError(
                "El costo inicial requiere stock inicial",
                field="cost_per_unit",
            )

        ingredient = Ingredient(
            business_id=business_id,
            name=data.name,
            unit=data.unit,
            stock=ZERO,
            min_stock=quantize_quantity(data.min_stock),
            cost_per_unit=ZERO,
            notes=data.notes,
        )
        self._ingredients.add(ingredient)

        if opening_stock > 0:
            self._db.flush()
            state = apply_movement(EMPTY_STOCK, MovementType.ENTRADA, opening_stock, opening_cost)
            self._movements.add(
                InventoryMovement(
                    business_id=business_id,
                    ingredient_id=ingredient.id,
                    type=MovementType.ENTRADA,
                    quantity=opening_stock,
                    unit_cost=opening_cost,
                    reason=OPENING_MOVEMENT_REASON,
                    user_id=user_id,
                )
            )
            ingredient.stock = state.stock
            ingredient.cost_per_unit = state.cost_per_unit

        self._commit("crear insumo", business_id=business_id)
        self._db.refresh(ingredient)

        logger.info(
            "Ingredient created",
            business_id=business_id,
            ingredient_id=ingredient.id,
            stock=str(ingredient.stock),
        )
        return ingredient

    def rebuild_ingredient(self, business_id: int, ingredient_id: int) -> Ingredient:
        """
        Recompute stock and cost from the movement log and store the result.

        Any difference from the stored values is logged as drift.
        """
        ingredient = self._ingredients.find_by_id(
            ingredient_id, business_id, include_inactive=True, for_update=True
        )
        if not ingredient:
            raise NotFoundError("Insumo", ingredient_id, business_id=business_id)

        movements = self._movements.find_all(
            business_id,
            filters=[InventoryMovement.ingredient_id == ingredient.id],
            order_by=InventoryMovement.id,
        )
        state = replay_movements(movements)

        stored = StockState(to_decimal(ingredient.stock), to_decimal(ingredient.cost_per_unit))
        if stored != state:
            logger.warning(
                "Ingredient drift corrected",
                business_id=business_id,
                ingredient_id=ingredient.id,
                stored_stock=str(stored.stock),
                stored_cost=str(stored.cost_per_unit),
                replayed_stock=str(state.stock),
                replayed_cost=str(state.cost_per_unit),
            )

        ingredient.stock = state.stock
        ingredient.cost_per_unit = state.cost_per_unit
        self._commit("reconstruir insumo", ingredient_id=ingredient.id, business_id=business_id)
        self._db.refresh(ingredient)

        logger.info(
            "Ingredient rebuilt",
            business_id=business_id,
            ingredient_id=ingredient.id,
            movements=len(movements),
        )
        return ingredient

    # =========================================================================
    # Reads
    # =========================================================================

    def list_movements(
        self,
        business_id: int,
        ingredient_id: int | None = None,
        movement_type: str | None = None,
        limit: int | None = None,
    ) -> Sequence[InventoryMovement]:
        """Movements of the business, newest first."""
        if limit is None:
            limit = settings.default_movements_limit
        limit = max(1, min(limit, Limits.MAX_MOVEMENTS_PAGE))

        filters = []
        if ingredient_id is not None:
            filters.append(InventoryMovement.ingredient_id == ingredient_id)
        if movement_type is not None:
            if movement_type not in MovementType.ALL:
                raise ValidationError(f"Tipo de movimiento inválido: {movement_type}")
            filters.append(InventoryMovement.type == movement_type)

        return self._movements.find_all(
            business_id,
            filters=filters,
            order_by=InventoryMovement.id.desc(),
            limit=limit,
        )

    def list_low_stock(self, business_id: int) -> Sequence[Ingredient]:
        """Active ingredients at or below their reorder threshold."""
        return self._ingredients.find_all(
            business_id,
            filters=[Ingredient.stock <= Ingredient.min_stock],
            order_by=Ingredient.name,
        )
