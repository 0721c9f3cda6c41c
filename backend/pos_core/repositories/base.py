"""
Repository Pattern for database access.

Provides a clean abstraction layer between business logic and data
access, with built-in multi-tenant isolation: every query a
TenantRepository builds is filtered by business_id, so an id belonging
to another business behaves exactly like a missing row.

Usage:
    from pos_core.repositories.base import TenantRepository

    product_repo = TenantRepository(Product, db)

    product = product_repo.find_by_id(42, business_id=1)
    products = product_repo.find_by_ids([1, 2], business_id=1, for_update=True)

    # With eager loading
    product_repo.find_all(business_id=1, options=[selectinload(Product.category)])
"""

from __future__ import annotations

from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from pos_core.models import Base

ModelT = TypeVar("ModelT", bound=Base)


class TenantRepository(Generic[ModelT]):
    """
    Repository with automatic multi-tenant isolation.

    The model must have a `business_id` column.
    Locking reads (for_update=True) emit SELECT ... FOR UPDATE so that
    read-then-write sequences on stock columns cannot lose updates.
    """

    def __init__(self, model: type[ModelT], session: Session):
        if not hasattr(model, "business_id"):
            raise AttributeError(
                f"Model {model.__name__} does not have business_id column."
            )
        self._model = model
        self._session = session

    @property
    def model(self) -> type[ModelT]:
        """The SQLAlchemy model class."""
        return self._model

    @property
    def session(self) -> Session:
        """The database session."""
        return self._session

    # =========================================================================
    # Query building
    # =========================================================================

    def _tenant_query(self, business_id: int) -> Select:
        """Create business-filtered base query."""
        return select(self._model).where(self._model.business_id == business_id)

    def _apply_active_filter(self, query: Select, include_inactive: bool) -> Select:
        """Apply is_active filter if model has it."""
        if hasattr(self._model, "is_active") and not include_inactive:
            query = query.where(self._model.is_active.is_(True))
        return query

    def _apply_options(self, query: Select, options: list[Any] | None) -> Select:
        """Apply eager loading options."""
        if options:
            query = query.options(*options)
        return query

    # =========================================================================
    # Reads
    # =========================================================================

    def find_by_id(
        self,
        entity_id: int,
        business_id: int,
        *,
        options: list[Any] | None = None,
        include_inactive: bool = False,
        for_update: bool = False,
    ) -> ModelT | None:
        """
        Find entity by ID within business scope.

        Args:
            entity_id: The primary key value.
            business_id: The owning business for isolation.
            options: SQLAlchemy loader options.
            include_inactive: Include soft-deleted entities.
            for_update: Lock the row until the transaction ends.

        Returns:
            Entity or None if not found or owned by another business.
        """
        query = self._tenant_query(business_id).where(self._model.id == entity_id)
        query = self._apply_active_filter(query, include_inactive)
        query = self._apply_options(query, options)
        if for_update:
            query = query.with_for_update()
        return self._session.scalar(query)

    def find_by_ids(
        self,
        entity_ids: Sequence[int],
        business_id: int,
        *,
        include_inactive: bool = False,
        for_update: bool = False,
    ) -> dict[int, ModelT]:
        """
        Find multiple entities by IDs within business scope.

        Rows are read (and locked, if requested) in ascending id order so
        that concurrent transactions acquire locks in the same order.

        Returns:
            Mapping of id to entity; missing ids are simply absent.
        """
        if not entity_ids:
            return {}

        query = (
            self._tenant_query(business_id)
            .where(self._model.id.in_(set(entity_ids)))
            .order_by(self._model.id)
        )
        query = self._apply_active_filter(query, include_inactive)
        if for_update:
            query = query.with_for_update()
        return {entity.id: entity for entity in self._session.scalars(query).all()}

    def find_all(
        self,
        business_id: int,
        *,
        filters: Sequence[Any] = (),
        options: list[Any] | None = None,
        include_inactive: bool = False,
        limit: int | None = None,
        offset: int | None = None,
        order_by: Any | None = None,
    ) -> Sequence[ModelT]:
        """
        Find all entities within business scope.

        Args:
            business_id: The owning business for isolation.
            filters: Extra WHERE clauses.
            options: SQLAlchemy loader options.
            include_inactive: Include soft-deleted entities.
            limit: Maximum results.
            offset: Skip count.
            order_by: Order expression.
        """
        query = self._tenant_query(business_id)
        if filters:
            query = query.where(*filters)
        query = self._apply_active_filter(query, include_inactive)
        query = self._apply_options(query, options)

        if order_by is not None:
            query = query.order_by(order_by)
        if offset is not None:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        return self._session.scalars(query).all()

    # =========================================================================
    # Unit of work helpers (never commit)
    # =========================================================================

    def add(self, entity: ModelT) -> ModelT:
        """Add entity to session (not committed)."""
        self._session.add(entity)
        return entity

    def add_all(self, entities: Sequence[ModelT]) -> Sequence[ModelT]:
        """Add multiple entities to session (not committed)."""
        self._session.add_all(entities)
        return entities
