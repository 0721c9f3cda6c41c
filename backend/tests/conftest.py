"""
Pytest configuration and fixtures for backend tests.
"""

import os

# The application engine is built at import time; keep it off Postgres.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pos_core.main import app
from shared.infrastructure.db import get_db
from pos_core.models import (
    Base, Business, Category, Combo, Customer, Ingredient, Preparation, Product,
)


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    # Create all tables
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        # Drop all tables after test
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database session override.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def seed_business(db_session):
    """Create the business the tests act as."""
    business = Business(id=1, name="Sanguchería Test")
    db_session.add(business)
    db_session.commit()
    db_session.refresh(business)
    return business


@pytest.fixture
def other_business(db_session):
    """A second business, for isolation checks."""
    business = Business(id=2, name="Otro Local")
    db_session.add(business)
    db_session.commit()
    db_session.refresh(business)
    return business


@pytest.fixture
def business_headers(seed_business):
    """Headers identifying the caller's business."""
    return {"X-Business-ID": str(seed_business.id)}


@pytest.fixture
def seed_category(db_session, seed_business):
    """Create a test category - shared fixture for all tests."""
    category = Category(business_id=seed_business.id, name="Sánguches")
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def make_product(db_session, seed_business):
    """
    Factory for products.

    Stock is set directly: product stock only moves through orders, and
    tests need a starting point.
    """
    def _make(name="Hamburguesa", price="10.00", stock=10, business_id=None, category_id=None, **kwargs):
        product = Product(
            business_id=business_id or seed_business.id,
            category_id=category_id,
            name=name,
            price=Decimal(price),
            stock=stock,
            **kwargs,
        )
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product

    return _make


@pytest.fixture
def seed_product(make_product, seed_category):
    """A product with price 10.00 and 10 units in stock."""
    return make_product(name="Hamburguesa", price="10.00", stock=10, category_id=seed_category.id)


@pytest.fixture
def make_ingredient(db_session, seed_business):
    """
    Factory for ingredients with a preset cost.

    Bypasses the ledger; use InventoryService.create_ingredient when a test
    needs the movement log to explain the stock.
    """
    def _make(name="Pan", cost="0", stock="0", business_id=None, **kwargs):
        ingredient = Ingredient(
            business_id=business_id or seed_business.id,
            name=name,
            stock=Decimal(stock),
            cost_per_unit=Decimal(cost),
            **kwargs,
        )
        db_session.add(ingredient)
        db_session.commit()
        db_session.refresh(ingredient)
        return ingredient

    return _make


@pytest.fixture
def make_preparation(db_session, seed_business):
    """Factory for preparations."""
    def _make(name="Salsa", yield_quantity="1", business_id=None, **kwargs):
        preparation = Preparation(
            business_id=business_id or seed_business.id,
            name=name,
            yield_quantity=Decimal(yield_quantity),
            **kwargs,
        )
        db_session.add(preparation)
        db_session.commit()
        db_session.refresh(preparation)
        return preparation

    return _make


@pytest.fixture
def make_combo(db_session, seed_business):
    """Factory for combos."""
    def _make(name="Combo Almuerzo", price="15.00", business_id=None):
        combo = Combo(
            business_id=business_id or seed_business.id,
            name=name,
            price=Decimal(price),
        )
        db_session.add(combo)
        db_session.commit()
        db_session.refresh(combo)
        return combo

    return _make


@pytest.fixture
def seed_customer(db_session, seed_business):
    """A registered customer of the test business."""
    customer = Customer(business_id=seed_business.id, name="Ana Pérez", phone="+56911111111")
    db_session.add(customer)
    db_session.commit()
    db_session.refresh(customer)
    return customer
