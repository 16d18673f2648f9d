"""
Database entity for deployments.
"""

from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType


class DeploymentEntity(Base):
    """
    Platform-side shadow of a subscription's placement in the ledger store.

    One row per subscription, created in ``ordered`` alongside it.
    """

    __tablename__ = "deployments"

    subscription_id = Column(
        String(32), ForeignKey("subscriptions.id"), primary_key=True
    )
    status = Column(String(32), nullable=False, index=True)
    ledger_user_id = Column(BigIntegerType, nullable=True, index=True)
    ledger_username = Column(String(255), nullable=True)
    deployed_at = Column(DateTime(timezone=True), nullable=True)  # first deploy
    deactivated_at = Column(DateTime(timezone=True), nullable=True)
    transferred_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
