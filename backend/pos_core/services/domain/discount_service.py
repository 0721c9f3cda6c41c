"""
Discount Domain Service.

Resolves which discount applies to an amount. Tiers are tried in
priority order and the first match wins:

    product → category → all

A discount is live when it is active and either has no window at all or
its closed window [start_date, end_date] covers the moment of the sale.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Sequence

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from shared.config.constants import DiscountScope, DiscountType, Limits
from shared.config.logging import offers_logger as logger
from shared.config.settings import settings
from shared.utils.exceptions import ValidationError
from shared.utils.money import ZERO, quantize_money, to_decimal
from shared.utils.schemas import DiscountCreate, DiscountOutput, DiscountResolution
from pos_core.models import Discount
from pos_core.repositories import TenantRepository
from pos_core.services.base_service import DomainService


def _live_window(now: datetime):
    """Filter for discounts whose validity window covers `now`."""
    return or_(
        and_(Discount.start_date.is_(None), Discount.end_date.is_(None)),
        and_(Discount.start_date <= now, Discount.end_date >= now),
    )


def discount_amount_for(discount: Discount, amount: Decimal) -> Decimal:
    """Amount taken off by a discount: a percentage of amount, or its fixed value."""
    value = to_decimal(discount.value)
    if discount.type == DiscountType.PERCENTAGE:
        return quantize_money(amount * value / 100)
    elif discount.type == DiscountType.FIXED:
        return quantize_money(value)
    raise ValidationError(f"Tipo de descuento inválido: {discount.type}", discount_id=discount.id)


class DiscountService(DomainService):
    """Domain service for discount rules. resolve() is read-only."""

    def __init__(self, db: Session, clamp_final_amount: bool | None = None):
        super().__init__(db)
        self._discounts = TenantRepository(Discount, db)
        if clamp_final_amount is None:
            clamp_final_amount = settings.clamp_discounted_amount
        self._clamp_final_amount = clamp_final_amount

    def _find_live(
        self,
        business_id: int,
        scope: str,
        target_id: int | None,
        now: datetime,
    ) -> Discount | None:
        """Newest live discount of one tier."""
        filters = [Discount.applies_to == scope, _live_window(now)]
        if scope in DiscountScope.TARGETED:
            filters.append(Discount.target_id == target_id)

        matches = self._discounts.find_all(
            business_id,
            filters=filters,
            order_by=Discount.id.desc(),
            limit=1,
        )
        return matches[0] if matches else None

    def resolve(
        self,
        business_id: int,
        amount: Decimal | int | str,
        product_id: int | None = None,
        category_id: int | None = None,
        now: datetime | None = None,
    ) -> DiscountResolution:
        """
        Apply the highest-priority live discount to `amount`.

        final_amount = amount - discount_amount; it is floored at 0 only
        when the clamp policy is on.

        Raises:
            ValidationError: amount missing, not numeric or not positive.
        """
        try:
            original = to_decimal(amount, default=ZERO)
        except ValueError as e:
            raise ValidationError(str(e), field="amount") from e
        if original <= 0:
            raise ValidationError("El monto debe ser mayor a cero", field="amount")
        original = quantize_money(original)

        if now is None:
            now = datetime.now(timezone.utc)

        tiers = (
            (DiscountScope.PRODUCT, product_id),
            (DiscountScope.CATEGORY, category_id),
            (DiscountScope.ALL_ITEMS, None),
        )
        discount = None
        for scope, target_id in tiers:
            if scope in DiscountScope.TARGETED and target_id is None:
                continue
            discount = self._find_live(business_id, scope, target_id, now)
            if discount:
                break

        if discount is None:
            return DiscountResolution(
                applied=False,
                original_amount=original,
                discount_amount=ZERO,
                final_amount=original,
            )

        discount_amount = discount_amount_for(discount, original)
        final_amount = original - discount_amount
        if self._clamp_final_amount and final_amount < 0:
            final_amount = quantize_money(ZERO)

        return DiscountResolution(
            applied=True,
            discount=DiscountOutput.model_validate(discount),
            original_amount=original,
            discount_amount=discount_amount,
            final_amount=final_amount,
        )

    def list_active(self, business_id: int, now: datetime | None = None) -> Sequence[Discount]:
        """Active discounts whose window covers `now`, newest first."""
        if now is None:
            now = datetime.now(timezone.utc)
        return self._discounts.find_all(
            business_id,
            filters=[_live_window(now)],
            order_by=Discount.id.desc(),
        )

    def create_discount(self, business_id: int, data: DiscountCreate) -> Discount:
        """
        Create a discount rule.

        Raises:
            ValidationError: Unknown type or scope, target_id inconsistent
                with the scope, percentage outside 0-100, or start after end.
        """
        if data.type not in DiscountType.ALL:
            raise ValidationError("El tipo debe ser percentage o fixed", field="type")
        if data.applies_to not in DiscountScope.ALL:
            raise ValidationError("applies_to debe ser all, category o product", field="applies_to")

        if data.applies_to in DiscountScope.TARGETED and data.target_id is None:
            raise ValidationError(
                f"Un descuento por {data.applies_to} requiere target_id", field="target_id"
            )
        if data.applies_to == DiscountScope.ALL_ITEMS and data.target_id is not None:
            raise ValidationError("Un descuento general no lleva target_id", field="target_id")

        value = to_decimal(data.value)
        if value < 0:
            raise ValidationError("El valor no puede ser negativo", field="value")
        if data.type == DiscountType.PERCENTAGE and not (
            Limits.MIN_PERCENTAGE <= value <= Limits.MAX_PERCENTAGE
        ):
            raise ValidationError("El porcentaje debe estar entre 0 y 100", field="value")

        if data.start_date and data.end_date and data.start_date > data.end_date:
            raise ValidationError("La fecha de inicio es posterior a la de fin", field="start_date")

        discount = Discount(
            business_id=business_id,
            name=data.name,
            type=data.type,
            value=quantize_money(value),
            applies_to=data.applies_to,
            target_id=data.target_id,
            start_date=data.start_date,
            end_date=data.end_date,
        )
        self._discounts.add(discount)
        self._commit("crear descuento", business_id=business_id)
        self._db.refresh(discount)

        logger.info(
            "Discount created",
            business_id=business_id,
            discount_id=discount.id,
            type=discount.type,
            applies_to=discount.applies_to,
        )
        return discount
