"""
Orders router.

Thin router that delegates to OrderService. DELETE cancels (stock is
restored); orders are never physically removed.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from shared.config.constants import Limits
from shared.infrastructure.db import get_db
from shared.utils.schemas import (
    CustomerSummary,
    OrderCreateRequest,
    OrderItemOutput,
    OrderOutput,
    OrderStatusUpdate,
)
from pos_core.models import Order
from pos_core.routers._common import current_business_id
from pos_core.services.domain import OrderService


router = APIRouter(prefix="/api/orders", tags=["orders"])


def _get_service(db: Session) -> OrderService:
    """Get OrderService instance."""
    return OrderService(db)


def _to_output(order: Order) -> OrderOutput:
    """Build the response from a hydrated order."""
    return OrderOutput(
        id=order.id,
        status=order.status,
        total=order.total,
        payment_method=order.payment_method,
        order_type=order.order_type,
        customer_id=order.customer_id,
        customer=CustomerSummary.model_validate(order.customer) if order.customer else None,
        customer_temp_info=order.customer_temp_info,
        reference=order.reference,
        delivery_address=order.delivery_address,
        maps_link=order.maps_link,
        notes=order.notes,
        created_at=order.created_at,
        updated_at=order.updated_at,
        items=[
            OrderItemOutput(
                id=item.id,
                product_id=item.product_id,
                product_name=item.product.name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                subtotal=item.subtotal,
                notes=item.notes,
            )
            for item in order.items
        ],
    )


@router.post("", response_model=OrderOutput, status_code=status.HTTP_201_CREATED)
def create_order(
    body: OrderCreateRequest,
    db: Session = Depends(get_db),
    business_id: int = Depends(current_business_id),
) -> OrderOutput:
    """Place an order and deduct product stock."""
    return _to_output(_get_service(db).create_order(business_id, body))


@router.get("", response_model=list[OrderOutput])
def list_orders(
    status: str | None = None,
    order_type: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    limit: int = Query(default=Limits.DEFAULT_PAGE_SIZE, ge=1, le=Limits.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    business_id: int = Depends(current_business_id),
) -> list[OrderOutput]:
    """List orders, newest first."""
    orders = _get_service(db).list_orders(
        business_id,
        status=status,
        order_type=order_type,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
    )
    return [_to_output(o) for o in orders]


@router.get("/{order_id}", response_model=OrderOutput)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    business_id: int = Depends(current_business_id),
) -> OrderOutput:
    return _to_output(_get_service(db).get_order(business_id, order_id))


@router.patch("/{order_id}/status", response_model=OrderOutput)
def update_order_status(
    order_id: int,
    body: OrderStatusUpdate,
    db: Session = Depends(get_db),
    business_id: int = Depends(current_business_id),
) -> OrderOutput:
    """Move an order along its status flow."""
    return _to_output(_get_service(db).update_status(business_id, order_id, body.status))


@router.delete("/{order_id}", response_model=OrderOutput)
def cancel_order(
    order_id: int,
    db: Session = Depends(get_db),
    business_id: int = Depends(current_business_id),
) -> OrderOutput:
    """Cancel an order and restore product stock."""
    return _to_output(_get_service(db).cancel_order(business_id, order_id))
