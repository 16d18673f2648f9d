"""
Database entity for subscriptions.
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Boolean, Float, Text
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType


class SubscriptionEntity(Base):
    """
    One purchase or grant of a plan.

    Created by checkout or redemption, never deleted. Billing fields are
    written by reconciliation only.
    """

    __tablename__ = "subscriptions"

    id = Column(String(32), primary_key=True)  # sub_<16 base62>
    buyer_user_id = Column(
        BigIntegerType, ForeignKey("users.id"), nullable=False, index=True
    )
    plan_id = Column(String(32), ForeignKey("plans.id"), nullable=False, index=True)

    # External billing (null for manual grants)
    stripe_customer_id = Column(String(255), nullable=True)
    stripe_subscription_id = Column(String(255), nullable=True, unique=True, index=True)
    stripe_status = Column(String(50), nullable=True)
    auto_renew_enabled = Column(Boolean, nullable=False, default=False)
    current_period_end = Column(BigIntegerType, nullable=True)  # epoch seconds

    # Origin redemption code
    redeemed_code_jti = Column(String(64), nullable=True, index=True)

    # Per-subscription overrides of the plan
    custom_plan_name = Column(String, nullable=True)
    custom_plan_description = Column(Text, nullable=True)
    custom_limit_5h_units = Column(Float, nullable=True)
    custom_limit_7d_units = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    expired_at = Column(DateTime(timezone=True), nullable=True)  # set once

    __table_args__ = (
        Index("idx_subscription_expiry_scan", "expired_at", "current_period_end"),
    )
