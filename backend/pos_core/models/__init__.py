"""
SQLAlchemy ORM Models Package.

All models are organized into domain-specific modules:
- base: Base class and AuditMixin
- tenant: Business
- inventory: Ingredient, Preparation, PreparationItem, InventoryMovement
- catalog: Category, Product, ProductRecipe
- offers: Discount, Combo, ComboItem
- order: Customer, Order, OrderItem
"""

# Base classes
from .base import Base, AuditMixin

# Tenant
from .tenant import Business

# Inventory (ledger and recipe graph leaves)
from .inventory import Ingredient, Preparation, PreparationItem, InventoryMovement

# Catalog
from .catalog import Category, Product, ProductRecipe

# Offers
from .offers import Discount, Combo, ComboItem

# Orders
from .order import Customer, Order, OrderItem

__all__ = [
    "Base",
    "AuditMixin",
    "Business",
    "Ingredient",
    "Preparation",
    "PreparationItem",
    "InventoryMovement",
    "Category",
    "Product",
    "ProductRecipe",
    "Discount",
    "Combo",
    "ComboItem",
    "Customer",
    "Order",
    "OrderItem",
]
