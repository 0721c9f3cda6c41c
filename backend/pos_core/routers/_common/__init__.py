"""
Common utilities shared across routers.
"""

from .deps import BUSINESS_HEADER, current_business_id

__all__ = [
    "BUSINESS_HEADER",
    "current_business_id",
]
