"""
Database entities for redemption codes and their redemptions.
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Float, Text
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType


class RedemptionCodeEntity(Base):
    """
    Durable record behind a signed redemption token.

    The row is the source of truth; the token only carries a signed copy of
    plan, duration and max uses.
    """

    __tablename__ = "redemption_codes"

    jti = Column(String(64), primary_key=True)
    created_by_user_id = Column(BigIntegerType, nullable=True)
    plan_id = Column(String(32), ForeignKey("plans.id"), nullable=False, index=True)
    duration_days = Column(Integer, nullable=False)
    max_uses = Column(Integer, nullable=False)
    used_count = Column(Integer, nullable=False, default=0, server_default="0")
    expires_at = Column(BigIntegerType, nullable=False)  # epoch seconds

    custom_plan_name = Column(String, nullable=True)
    custom_plan_description = Column(Text, nullable=True)
    custom_limit_5h_units = Column(Float, nullable=True)
    custom_limit_7d_units = Column(Float, nullable=True)

    revoked_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class RedemptionRecordEntity(Base):
    """One row per (code, redeemer). Its existence makes redemption exactly-once per redeemer."""

    __tablename__ = "redemption_code_redemptions"

    jti = Column(String(64), ForeignKey("redemption_codes.jti"), primary_key=True)
    redeemed_by_user_id = Column(BigIntegerType, primary_key=True)
    subscription_id = Column(
        String(32), ForeignKey("subscriptions.id"), nullable=False, unique=True
    )
    redeemed_at = Column(DateTime(timezone=True), server_default=func.now())
