from sqlalchemy import Column, String, Boolean, DateTime, Float, Text
from sqlalchemy.sql import func

from common.db.base import Base


class PlanEntity(Base):
    """Catalog plan. Maintained by the admin workflow, read-only here."""

    __tablename__ = "plans"

    id = Column(String(32), primary_key=True)  # pln_<16 base62>
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    limit_5h_units = Column(Float, nullable=False)
    limit_7d_units = Column(Float, nullable=False)
    stripe_price_id = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    is_hidden = Column(Boolean, nullable=False, default=False, server_default="false")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
