"""Billing repositories."""

from packages.billing.repositories.stripe_event_repository import StripeEventRepository

__all__ = [
    "StripeEventRepository",
]
