"""
Database configuration and session management.
Uses SQLAlchemy 2.0 patterns.

Every multi-row mutation in the domain services runs inside the single
transaction of the Session it was handed and ends with safe_commit().
"""

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from shared.config.settings import settings


def _engine_options(database_url: str) -> dict[str, Any]:
    """
    Pool and timeout options for the configured backend.
    SQLite (tests, local tooling) does not accept the QueuePool settings.
    """
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}

    return {
        "pool_pre_ping": True,  # Verify connections before using
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout,
        "pool_recycle": settings.db_pool_recycle,
        "connect_args": {"connect_timeout": 10},
    }


engine = create_engine(
    settings.database_url,
    echo=False,  # Set to True for SQL logging in development
    **_engine_options(settings.database_url),
)

# Session factory
SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency for database sessions.

    Usage:
        @router.post("/orders")
        def create_order(body: OrderCreateRequest, db: Session = Depends(get_db)):
            return OrderService(db).create_order(business_id, body)

    The session is automatically closed after the request completes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Session for in-process callers (scripts, jobs, tests) outside FastAPI.

    Usage:
        with get_db_context() as db:
            InventoryService(db).rebuild_ingredient(business_id, ingredient_id)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def safe_commit(db: Session) -> None:
    """
    Commit with automatic rollback on failure.

    Raises the original exception after rolling back, so callers can
    translate it (see shared.utils.exceptions.PersistenceError).
    """
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
