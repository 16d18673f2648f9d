"""Domain models for billing."""

from packages.billing.models.domain.reconciliation import CheckoutStarted, SweepSummary
from packages.billing.models.domain.stripe_event import (
    StripeEventCreateModel,
    StripeEventRecord,
)

__all__ = [
    "CheckoutStarted",
    "SweepSummary",
    "StripeEventCreateModel",
    "StripeEventRecord",
]
