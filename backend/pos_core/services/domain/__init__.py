"""
Domain Services - application layer.

Services contain the business logic and own the transaction of every
operation they expose. They use Repositories for data access.

Structure:
    Router (thin controller)
        ↓
    Service (business logic)  ← YOU ARE HERE
        ↓
    Repository (data access)
        ↓
    Model (entity)

Usage:
    from pos_core.services.domain import OrderService

    # In router
    service = OrderService(db)
    order = service.create_order(business_id, body)
"""

from .inventory_service import InventoryService, StockState, apply_movement, replay_movements
from .costing_service import CostingService
from .discount_service import DiscountService
from .combo_service import ComboService
from .order_service import OrderService

__all__ = [
    # Inventory ledger
    "InventoryService",
    "StockState",
    "apply_movement",
    "replay_movements",
    # Costing
    "CostingService",
    # Offers
    "DiscountService",
    "ComboService",
    # Orders
    "OrderService",
]
