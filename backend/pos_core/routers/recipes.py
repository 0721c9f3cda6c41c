"""
Recipes router.

Thin router that delegates to CostingService.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shared.infrastructure.db import get_db
from shared.utils.schemas import (
    PreparationCreate,
    PreparationOutput,
    PreparationRecipeRequest,
    ProductCost,
    ProductRecipeRequest,
    RecipeLine,
)
from pos_core.routers._common import current_business_id
from pos_core.services.domain import CostingService


router = APIRouter(prefix="/api/recipes", tags=["recipes"])


def _get_service(db: Session) -> CostingService:
    """Get CostingService instance."""
    return CostingService(db)


@router.post("/preparations", response_model=PreparationOutput, status_code=status.HTTP_201_CREATED)
def create_preparation(
    body: PreparationCreate,
    db: Session = Depends(get_db),
    business_id: int = Depends(current_business_id),
) -> PreparationOutput:
    preparation = _get_service(db).create_preparation(business_id, body)
    return PreparationOutput.model_validate(preparation)


@router.post("/preparations/{preparation_id}", response_model=PreparationOutput)
def save_preparation_recipe(
    preparation_id: int,
    body: PreparationRecipeRequest,
    db: Session = Depends(get_db),
    business_id: int = Depends(current_business_id),
) -> PreparationOutput:
    """Replace a preparation's ingredients and recompute its cost."""
    preparation = _get_service(db).save_preparation_recipe(business_id, preparation_id, body.items)
    return PreparationOutput.model_validate(preparation)


@router.get("/products/{product_id}", response_model=list[RecipeLine])
def get_product_recipe(
    product_id: int,
    db: Session = Depends(get_db),
    business_id: int = Depends(current_business_id),
) -> list[RecipeLine]:
    return _get_service(db).get_product_recipe(business_id, product_id)


@router.post("/products/{product_id}", response_model=list[RecipeLine])
def save_product_recipe(
    product_id: int,
    body: ProductRecipeRequest,
    db: Session = Depends(get_db),
    business_id: int = Depends(current_business_id),
) -> list[RecipeLine]:
    """Replace a product's recipe."""
    return _get_service(db).save_product_recipe(business_id, product_id, body.items)


@router.get("/products/{product_id}/cost", response_model=ProductCost)
def get_product_cost(
    product_id: int,
    db: Session = Depends(get_db),
    business_id: int = Depends(current_business_id),
) -> ProductCost:
    """Rolled-up recipe cost and margin of a product."""
    return _get_service(db).compute_product_cost(business_id, product_id)
