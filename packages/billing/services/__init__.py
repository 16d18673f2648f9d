"""Billing services."""

from packages.billing.services.checkout_service import CheckoutService
from packages.billing.services.reconciliation_service import ReconciliationService

__all__ = [
    "CheckoutService",
    "ReconciliationService",
]
