"""
Base class for the domain services.

Architecture:
    Router (thin) → Service (business logic) → Repository (data access) → Model

Each service receives the request's Session and owns the transaction of
every operation it exposes: reads and locks go through TenantRepository,
and every mutation ends in exactly one call to _commit().

Usage:
    from pos_core.services.base_service import DomainService

    class ComboService(DomainService):
        def save_combo_items(self, business_id, combo_id, items):
            ...
            self._commit("guardar combo", combo_id=combo_id)
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shared.config.logging import get_logger
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import PersistenceError

logger = get_logger(__name__)


class DomainService:
    """
    Common infrastructure for domain services (session access, commit).
    """

    def __init__(self, db: Session):
        self._db = db

    @property
    def db(self) -> Session:
        """Database session."""
        return self._db

    def _commit(self, operation: str, **log_context: Any) -> None:
        """
        Commit the current transaction.

        On a storage failure the transaction is rolled back by safe_commit,
        the driver error is logged, and PersistenceError is raised instead.
        """
        try:
            safe_commit(self._db)
        except SQLAlchemyError as e:
            logger.error(
                "Transaction failed",
                operation=operation,
                error=str(e),
                **log_context,
            )
            raise PersistenceError(operation, **log_context) from e
