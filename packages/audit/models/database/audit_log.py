from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType


class AuditLogEntity(Base):
    """Append-only record of administrative and entitlement actions."""

    __tablename__ = "audit_logs"

    id = Column(BigIntegerType, primary_key=True, autoincrement=True)
    actor_user_id = Column(BigIntegerType, nullable=True, index=True)
    action = Column(String, nullable=False, index=True)
    subject_subscription_id = Column(String(32), nullable=True, index=True)
    subject_plan_id = Column(String(32), nullable=True)
    meta = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
