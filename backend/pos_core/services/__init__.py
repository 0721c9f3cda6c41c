"""
Services module for business logic.

- base_service: DomainService (session access, commit with rollback)
- domain/: one service per aggregate (inventory, costing, offers, orders)
"""
