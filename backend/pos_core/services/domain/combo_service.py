"""
Combo Domain Service.

A combo's price is set by the business. original_price is a snapshot of
what its products would cost bought separately, taken when the item set
is saved; it is reference data and never constrains price.
"""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import delete
from sqlalchemy.orm import Session, selectinload

from shared.config.logging import offers_logger as logger
from shared.utils.exceptions import NotFoundError, ValidationError
from shared.utils.money import ZERO, quantize_cost, quantize_money, to_decimal
from shared.utils.schemas import ComboCreate, ComboItemInput, ComboPricing
from pos_core.models import Combo, ComboItem, Product
from pos_core.repositories import TenantRepository
from pos_core.services.base_service import DomainService
from pos_core.services.domain.costing_service import CostingService


class ComboService(DomainService):
    """Domain service for combo composition and reference pricing."""

    def __init__(self, db: Session):
        super().__init__(db)
        self._combos = TenantRepository(Combo, db)
        self._products = TenantRepository(Product, db)

    def create_combo(self, business_id: int, data: ComboCreate) -> Combo:
        """
        Create a combo with no items. original_price stays unset until the
        first item save.

        Raises:
            ValidationError: Negative price.
            PersistenceError: Storage failure (rolled back).
        """
        price = quantize_money(data.price)
        if price < 0:
            raise ValidationError(
                "El precio del combo no puede ser negativo",
                field="price",
                value=str(data.price),
            )

        combo = Combo(
            business_id=business_id,
            name=data.name,
            description=data.description,
            price=price,
        )
        self._combos.add(combo)
        self._commit("crear combo", business_id=business_id)
        self._db.refresh(combo)

        logger.info("Combo created", business_id=business_id, combo_id=combo.id, price=str(price))
        return combo

    def save_combo_items(
        self,
        business_id: int,
        combo_id: int,
        items: Sequence[ComboItemInput],
    ) -> Combo:
        """
        Replace a combo's items and snapshot original_price.

        original_price = sum(product.price * quantity)

        Raises:
            NotFoundError: Combo or any product missing in the business.
            PersistenceError: Storage failure (rolled back).
        """
        combo = self._combos.find_by_id(combo_id, business_id, for_update=True)
        if not combo:
            raise NotFoundError("Combo", combo_id, business_id=business_id)

        for item in items:
            if item.quantity < 1:
                raise ValidationError("La cantidad debe ser al menos 1", field="quantity")

        products = self._products.find_by_ids([item.product_id for item in items], business_id)
        original_price = ZERO
        for item in items:
            product = products.get(item.product_id)
            if product is None:
                raise NotFoundError("Producto", item.product_id, business_id=business_id)
            original_price += to_decimal(product.price) * item.quantity

        self._db.execute(delete(ComboItem).where(ComboItem.combo_id == combo.id))
        self._db.add_all(
            [
                ComboItem(combo_id=combo.id, product_id=item.product_id, quantity=item.quantity)
                for item in items
            ]
        )
        combo.original_price = quantize_money(original_price)

        self._commit("guardar combo", combo_id=combo.id, business_id=business_id)
        self._db.refresh(combo)

        logger.info(
            "Combo items saved",
            business_id=business_id,
            combo_id=combo.id,
            items=len(items),
            original_price=str(combo.original_price),
        )
        return combo

    def get_combo(self, business_id: int, combo_id: int) -> Combo:
        combo = self._combos.find_by_id(
            combo_id, business_id, options=[selectinload(Combo.items)]
        )
        if not combo:
            raise NotFoundError("Combo", combo_id, business_id=business_id)
        return combo

    def get_combo_pricing(self, business_id: int, combo_id: int) -> ComboPricing:
        """
        Reference pricing of a combo.

        savings = original_price - price
        cost = sum(product recipe cost * quantity)
        """
        combo = self.get_combo(business_id, combo_id)

        price = to_decimal(combo.price)
        original_price = to_decimal(combo.original_price, default=ZERO)

        unit_costs = CostingService(self._db).product_costs(
            business_id, [item.product_id for item in combo.items]
        )
        cost = sum(
            (unit_costs[item.product_id] * item.quantity for item in combo.items),
            ZERO,
        )

        return ComboPricing(
            combo_id=combo.id,
            price=price,
            original_price=original_price,
            savings=quantize_money(original_price - price),
            cost=quantize_cost(cost),
        )
