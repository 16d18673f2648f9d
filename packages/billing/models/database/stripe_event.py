from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.sql import func

from common.db.base import Base


class StripeEventEntity(Base):
    """Received Stripe webhook events, keyed by Stripe's event id."""

    __tablename__ = "stripe_events"

    id = Column(String, primary_key=True)
    type = Column(String, nullable=False, index=True)
    payload = Column(Text, nullable=False)
    received_at = Column(DateTime(timezone=True), server_default=func.now())
