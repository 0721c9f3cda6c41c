"""
Inventory router.

Thin router that delegates to InventoryService. Ingredient stock and cost
only ever change through the movement endpoint.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from shared.config.constants import Limits
from shared.infrastructure.db import get_db
from shared.utils.schemas import IngredientCreate, IngredientOutput, MovementCreate, MovementOutput
from pos_core.routers._common import current_business_id
from pos_core.services.domain import InventoryService


router = APIRouter(prefix="/api/inventory", tags=["inventory"])


def _get_service(db: Session) -> InventoryService:
    """Get InventoryService instance."""
    return InventoryService(db)


@router.post("/movements", response_model=MovementOutput, status_code=status.HTTP_201_CREATED)
def record_movement(
    body: MovementCreate,
    db: Session = Depends(get_db),
    business_id: int = Depends(current_business_id),
) -> MovementOutput:
    """Append an entrada, salida or ajuste to an ingredient's ledger."""
    movement = _get_service(db).record_movement(
        business_id,
        body.ingredient_id,
        body.type,
        body.quantity,
        unit_cost=body.unit_cost,
        reason=body.reason,
        notes=body.notes,
    )
    return MovementOutput.model_validate(movement)


@router.get("/movements", response_model=list[MovementOutput])
def list_movements(
    ingredient_id: int | None = None,
    type: str | None = None,
    limit: int | None = Query(default=None, ge=1, le=Limits.MAX_MOVEMENTS_PAGE),
    db: Session = Depends(get_db),
    business_id: int = Depends(current_business_id),
) -> list[MovementOutput]:
    """List movements, newest first."""
    movements = _get_service(db).list_movements(
        business_id, ingredient_id=ingredient_id, movement_type=type, limit=limit
    )
    return [MovementOutput.model_validate(m) for m in movements]


@router.post("/ingredients", response_model=IngredientOutput, status_code=status.HTTP_201_CREATED)
def create_ingredient(
    body: IngredientCreate,
    db: Session = Depends(get_db),
    business_id: int = Depends(current_business_id),
) -> IngredientOutput:
    """Create an ingredient; opening stock is booked as a movement."""
    ingredient = _get_service(db).create_ingredient(business_id, body)
    return IngredientOutput.model_validate(ingredient)


@router.get("/ingredients/low-stock", response_model=list[IngredientOutput])
def list_low_stock(
    db: Session = Depends(get_db),
    business_id: int = Depends(current_business_id),
) -> list[IngredientOutput]:
    """Active ingredients at or below their minimum stock."""
    return [IngredientOutput.model_validate(i) for i in _get_service(db).list_low_stock(business_id)]


@router.post("/ingredients/{ingredient_id}/rebuild", response_model=IngredientOutput)
def rebuild_ingredient(
    ingredient_id: int,
    db: Session = Depends(get_db),
    business_id: int = Depends(current_business_id),
) -> IngredientOutput:
    """Recompute stock and cost from the movement log."""
    ingredient = _get_service(db).rebuild_ingredient(business_id, ingredient_id)
    return IngredientOutput.model_validate(ingredient)
