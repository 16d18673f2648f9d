"""Database models for billing."""

from packages.billing.models.database.stripe_event import StripeEventEntity

__all__ = [
    "StripeEventEntity",
]
