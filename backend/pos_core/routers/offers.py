"""
Offers router: discounts and combos.

Thin router that delegates to DiscountService and ComboService.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shared.infrastructure.db import get_db
from shared.utils.schemas import (
    ComboCreate,
    ComboItemsRequest,
    ComboOutput,
    ComboPricing,
    DiscountCalculateRequest,
    DiscountCreate,
    DiscountOutput,
    DiscountResolution,
)
from pos_core.routers._common import current_business_id
from pos_core.services.domain import ComboService, DiscountService


router = APIRouter(prefix="/api/offers", tags=["offers"])


# =============================================================================
# Discounts
# =============================================================================


@router.post("/discounts", response_model=DiscountOutput, status_code=status.HTTP_201_CREATED)
def create_discount(
    body: DiscountCreate,
    db: Session = Depends(get_db),
    business_id: int = Depends(current_business_id),
) -> DiscountOutput:
    discount = DiscountService(db).create_discount(business_id, body)
    return DiscountOutput.model_validate(discount)


@router.get("/discounts/active", response_model=list[DiscountOutput])
def list_active_discounts(
    db: Session = Depends(get_db),
    business_id: int = Depends(current_business_id),
) -> list[DiscountOutput]:
    """Discounts live right now, newest first."""
    return [DiscountOutput.model_validate(d) for d in DiscountService(db).list_active(business_id)]


@router.post("/discounts/calculate", response_model=DiscountResolution)
def calculate_discount(
    body: DiscountCalculateRequest,
    db: Session = Depends(get_db),
    business_id: int = Depends(current_business_id),
) -> DiscountResolution:
    """Resolve the discount for an amount (product → category → all)."""
    return DiscountService(db).resolve(
        business_id,
        body.amount,
        product_id=body.product_id,
        category_id=body.category_id,
    )


# =============================================================================
# Combos
# =============================================================================


@router.post("/combos", response_model=ComboOutput, status_code=status.HTTP_201_CREATED)
def create_combo(
    body: ComboCreate,
    db: Session = Depends(get_db),
    business_id: int = Depends(current_business_id),
) -> ComboOutput:
    """Create an empty combo; items are added with POST /combos/{id}/items."""
    service = ComboService(db)
    combo = service.create_combo(business_id, body)
    return ComboOutput.model_validate(service.get_combo(business_id, combo.id))


@router.post("/combos/{combo_id}/items", response_model=ComboOutput)
def save_combo_items(
    combo_id: int,
    body: ComboItemsRequest,
    db: Session = Depends(get_db),
    business_id: int = Depends(current_business_id),
) -> ComboOutput:
    """Replace a combo's products and snapshot its original price."""
    service = ComboService(db)
    service.save_combo_items(business_id, combo_id, body.items)
    return ComboOutput.model_validate(service.get_combo(business_id, combo_id))


@router.get("/combos/{combo_id}/pricing", response_model=ComboPricing)
def get_combo_pricing(
    combo_id: int,
    db: Session = Depends(get_db),
    business_id: int = Depends(current_business_id),
) -> ComboPricing:
    return ComboService(db).get_combo_pricing(business_id, combo_id)
