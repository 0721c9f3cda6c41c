"""
Costing Domain Service.

Rolls costs up the recipe graph:
    Ingredient (ledger cost) → Preparation (batch cost / yield) → Product

Preparation costs are stored and recomputed whenever the item set is
saved. Product costs are never stored; they are derived on read from the
current component costs.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Sequence, Union

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from shared.config.constants import RecipeItemType
from shared.config.logging import costing_logger as logger
from shared.utils.exceptions import NotFoundError, ValidationError
from shared.utils.money import ZERO, quantize_cost, to_decimal
from shared.utils.schemas import (
    IngredientComponent,
    PreparationComponent,
    PreparationCreate,
    PreparationItemInput,
    ProductCost,
    RecipeLine,
)
from pos_core.models import Ingredient, Preparation, PreparationItem, Product, ProductRecipe
from pos_core.repositories import TenantRepository
from pos_core.services.base_service import DomainService

Component = Union[Ingredient, Preparation]


class CostingService(DomainService):
    """
    Domain service for recipe costing.

    Recipe saves replace the whole item set in one transaction; reads
    never flush or commit.
    """

    def __init__(self, db: Session):
        super().__init__(db)
        self._ingredients = TenantRepository(Ingredient, db)
        self._preparations = TenantRepository(Preparation, db)
        self._products = TenantRepository(Product, db)

    # =========================================================================
    # Component lookup
    # =========================================================================

    def _load_components(
        self,
        business_id: int,
        keys: Sequence[tuple[str, int]],
    ) -> dict[tuple[str, int], Component]:
        """
        Resolve (item_type, item_id) pairs within the business.

        Soft-deleted components still resolve: their last known cost keeps
        counting until the recipe is edited.
        """
        ids_by_type: dict[str, list[int]] = {t: [] for t in RecipeItemType.ALL}
        for item_type, item_id in keys:
            if item_type not in ids_by_type:
                raise ValidationError(f"Tipo de componente inválido: {item_type}", field="item_type")
            ids_by_type[item_type].append(item_id)

        found: dict[tuple[str, int], Component] = {}
        for item_type, ids in ids_by_type.items():
            if not ids:
                continue
            if item_type == RecipeItemType.INGREDIENT:
                rows = self._ingredients.find_by_ids(ids, business_id, include_inactive=True)
            elif item_type == RecipeItemType.PREPARATION:
                rows = self._preparations.find_by_ids(ids, business_id, include_inactive=True)
            else:
                raise ValidationError(f"Tipo de componente inválido: {item_type}", field="item_type")
            found.update({(item_type, row_id): row for row_id, row in rows.items()})
        return found

    @staticmethod
    def _component_label(item_type: str) -> str:
        if item_type == RecipeItemType.INGREDIENT:
            return "Insumo"
        elif item_type == RecipeItemType.PREPARATION:
            return "Preparación"
        raise ValidationError(f"Tipo de componente inválido: {item_type}", field="item_type")

    # =========================================================================
    # Preparations
    # =========================================================================

    def create_preparation(self, business_id: int, data: PreparationCreate) -> Preparation:
        """
        Create a preparation with no items and zero cost.

        Raises:
            ValidationError: yield_quantity not positive.
            PersistenceError: Storage failure (rolled back).
        """
        yield_quantity = data.yield_quantity
        if yield_quantity <= 0:
            raise ValidationError(
                "El rendimiento de la preparación debe ser mayor a cero",
                field="yield_quantity",
                value=str(data.yield_quantity),
            )

        preparation = Preparation(
            business_id=business_id,
            name=data.name,
            unit=data.unit,
            yield_quantity=yield_quantity,
            cost_per_unit=ZERO,
            notes=data.notes,
        )
        self._preparations.add(preparation)
        self._commit("crear preparación", business_id=business_id)
        self._db.refresh(preparation)

        logger.info(
            "Preparation created",
            business_id=business_id,
            preparation_id=preparation.id,
            yield_quantity=str(yield_quantity),
        )
        return preparation

    def save_preparation_recipe(
        self,
        business_id: int,
        preparation_id: int,
        items: Sequence[PreparationItemInput],
    ) -> Preparation:
        """
        Replace a preparation's items and recompute its cost per unit.

        cost_per_unit = sum(ingredient.cost_per_unit * quantity) / yield_quantity

        Raises:
            NotFoundError: Preparation missing or in another business.
            ValidationError: Repeated or unknown ingredient.
            PersistenceError: Storage failure (rolled back).
        """
        preparation = self._preparations.find_by_id(preparation_id, business_id, for_update=True)
        if not preparation:
            raise NotFoundError("Preparación", preparation_id, business_id=business_id)

        ingredient_ids = [item.ingredient_id for item in items]
        if len(set(ingredient_ids)) != len(ingredient_ids):
            raise ValidationError("La preparación repite un insumo", preparation_id=preparation.id)

        ingredients = self._ingredients.find_by_ids(ingredient_ids, business_id, include_inactive=True)
        missing = [i for i in ingredient_ids if i not in ingredients]
        if missing:
            raise ValidationError(
                f"Insumos no encontrados: {missing}",
                preparation_id=preparation.id,
                business_id=business_id,
            )

        batch_cost = ZERO
        for item in items:
            batch_cost += to_decimal(ingredients[item.ingredient_id].cost_per_unit) * item.quantity

        self._db.execute(
            delete(PreparationItem).where(PreparationItem.preparation_id == preparation.id)
        )
        self._db.add_all(
            [
                PreparationItem(
                    preparation_id=preparation.id,
                    ingredient_id=item.ingredient_id,
                    quantity=item.quantity,
                )
                for item in items
            ]
        )
        preparation.cost_per_unit = quantize_cost(batch_cost / to_decimal(preparation.yield_quantity))

        self._commit("guardar receta de preparación", preparation_id=preparation.id)
        self._db.refresh(preparation)

        logger.info(
            "Preparation recipe saved",
            business_id=business_id,
            preparation_id=preparation.id,
            items=len(items),
            cost_per_unit=str(preparation.cost_per_unit),
        )
        return preparation

    # =========================================================================
    # Products
    # =========================================================================

    def save_product_recipe(
        self,
        business_id: int,
        product_id: int,
        items: Sequence[Union[IngredientComponent, PreparationComponent]],
    ) -> list[RecipeLine]:
        """
        Replace a product's recipe.

        Raises:
            NotFoundError: Product or any component missing in the business.
            ValidationError: The same component listed twice.
            PersistenceError: Storage failure (rolled back).
        """
        product = self._products.find_by_id(product_id, business_id, for_update=True)
        if not product:
            raise NotFoundError("Producto", product_id, business_id=business_id)

        keys = [(item.item_type, item.item_id) for item in items]
        if len(set(keys)) != len(keys):
            raise ValidationError("La receta repite un componente", product_id=product.id)

        components = self._load_components(business_id, keys)
        for item_type, item_id in keys:
            if (item_type, item_id) not in components:
                raise NotFoundError(
                    self._component_label(item_type), item_id, business_id=business_id
                )

        self._db.execute(delete(ProductRecipe).where(ProductRecipe.product_id == product.id))
        self._db.add_all(
            [
                ProductRecipe(
                    product_id=product.id,
                    item_type=item.item_type,
                    item_id=item.item_id,
                    quantity=item.quantity,
                )
                for item in items
            ]
        )

        self._commit("guardar receta de producto", product_id=product.id)

        logger.info(
            "Product recipe saved",
            business_id=business_id,
            product_id=product.id,
            items=len(items),
        )
        return self.get_product_recipe(business_id, product.id)

    def get_product_recipe(self, business_id: int, product_id: int) -> list[RecipeLine]:
        """Recipe lines of a product with the resolved component and line cost."""
        product = self._products.find_by_id(product_id, business_id)
        if not product:
            raise NotFoundError("Producto", product_id, business_id=business_id)
        return self._recipe_lines(business_id, product)

    def _recipe_lines(self, business_id: int, product: Product) -> list[RecipeLine]:
        recipe = self._db.scalars(
            select(ProductRecipe)
            .where(ProductRecipe.product_id == product.id)
            .order_by(ProductRecipe.id)
        ).all()

        components = self._load_components(
            business_id, [(row.item_type, row.item_id) for row in recipe]
        )

        lines = []
        for row in recipe:
            component = components.get((row.item_type, row.item_id))
            if component is None:
                raise NotFoundError(
                    self._component_label(row.item_type), row.item_id, business_id=business_id
                )
            cost_per_unit = to_decimal(component.cost_per_unit)
            quantity = to_decimal(row.quantity)
            lines.append(
                RecipeLine(
                    id=row.id,
                    item_type=row.item_type,
                    item_id=row.item_id,
                    quantity=quantity,
                    name=component.name,
                    unit=component.unit,
                    cost_per_unit=cost_per_unit,
                    line_cost=quantize_cost(cost_per_unit * quantity),
                )
            )
        return lines

    def compute_product_cost(self, business_id: int, product_id: int) -> ProductCost:
        """
        Product cost from its recipe against its price.

        margin = price - cost. A product with no recipe costs 0.
        """
        product = self._products.find_by_id(product_id, business_id)
        if not product:
            raise NotFoundError("Producto", product_id, business_id=business_id)

        lines = self._recipe_lines(business_id, product)
        cost = quantize_cost(sum((line.line_cost for line in lines), ZERO))
        price = to_decimal(product.price)

        return ProductCost(
            product_id=product.id,
            price=price,
            cost=cost,
            margin=quantize_cost(price - cost),
            lines=lines,
        )

    def product_costs(self, business_id: int, product_ids: Sequence[int]) -> dict[int, Decimal]:
        """
        Rolled-up cost per product id.

        Soft-deleted products still resolve, so bundles that include them
        keep a cost.
        """
        products = self._products.find_by_ids(product_ids, business_id, include_inactive=True)
        costs = {}
        for product_id in dict.fromkeys(product_ids):
            product = products.get(product_id)
            if product is None:
                raise NotFoundError("Producto", product_id, business_id=business_id)
            lines = self._recipe_lines(business_id, product)
            costs[product_id] = quantize_cost(sum((line.line_cost for line in lines), ZERO))
        return costs
