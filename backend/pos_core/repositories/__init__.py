"""
Repository layer: tenant-isolated data access for the domain services.
"""

from .base import TenantRepository

__all__ = ["TenantRepository"]
