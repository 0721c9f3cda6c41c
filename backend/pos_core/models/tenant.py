"""
Tenant Model: Business.
"""

from __future__ import annotations

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import AuditMixin, Base, IdType


class Business(AuditMixin, Base):
    """
    Owning business (tenant). Every costed entity, discount and order
    carries a business_id and is only visible to callers of that business.
    """

    __tablename__ = "business"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
