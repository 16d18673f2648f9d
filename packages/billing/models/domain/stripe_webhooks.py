"""
Domain models for Stripe webhook payloads.

Only the fields the reconciliation path reads are typed. Everything else
Stripe sends is kept as extra data.
"""

from typing import Any, Dict, List, Optional
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class StripeWebhookType(str, Enum):
    """Stripe webhook event types we act on."""

    # Subscription
    SUBSCRIPTION_CREATED = "customer.subscription.created"
    SUBSCRIPTION_UPDATED = "customer.subscription.updated"
    SUBSCRIPTION_DELETED = "customer.subscription.deleted"

    # Payment
    INVOICE_PAID = "invoice.paid"
    INVOICE_PAYMENT_SUCCEEDED = "invoice.payment_succeeded"
    INVOICE_PAYMENT_FAILED = "invoice.payment_failed"
    INVOICE_PAYMENT_ACTION_REQUIRED = "invoice.payment_action_required"

    @classmethod
    def subscription_events(cls) -> frozenset:
        return frozenset(
            {
                cls.SUBSCRIPTION_CREATED.value,
                cls.SUBSCRIPTION_UPDATED.value,
                cls.SUBSCRIPTION_DELETED.value,
            }
        )

    @classmethod
    def invoice_events(cls) -> frozenset:
        return frozenset(
            {
                cls.INVOICE_PAID.value,
                cls.INVOICE_PAYMENT_SUCCEEDED.value,
                cls.INVOICE_PAYMENT_FAILED.value,
                cls.INVOICE_PAYMENT_ACTION_REQUIRED.value,
            }
        )


CONFIRMATION_SECRET_EXPAND = "latest_invoice.confirmation_secret"
PAYMENT_INTENT_EXPAND = "latest_invoice.payment_intent"


def _object_id(value: Any) -> Optional[str]:
    """Stripe references are either an id string or an expanded object."""
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get("id"), str):
        return value["id"]
    return None


class StripeSubscriptionItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    current_period_end: Optional[int] = None


class StripeSubscriptionItems(BaseModel):
    model_config = ConfigDict(extra="allow")

    data: List[StripeSubscriptionItem] = Field(default_factory=list)


class StripeSubscriptionData(BaseModel):
    """Stripe subscription object."""

    model_config = ConfigDict(extra="allow")

    id: str
    customer: Optional[Any] = None
    status: str
    cancel_at_period_end: bool = False
    current_period_end: Optional[int] = None
    items: Optional[StripeSubscriptionItems] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    latest_invoice: Optional[Any] = None

    def auto_renew_enabled(self) -> bool:
        return not self.cancel_at_period_end

    def period_end(self) -> Optional[int]:
        """
        End of the current billing period.

        Newer API versions report the period per item, in which case the
        earliest item end wins. Older ones report it on the subscription.
        """
        item_ends = [
            item.current_period_end
            for item in (self.items.data if self.items else [])
            if item.current_period_end is not None
        ]
        if item_ends:
            return min(item_ends)
        return self.current_period_end

    def client_secret(self) -> Optional[str]:
        """Payment confirmation secret from an expanded ``latest_invoice``."""
        invoice = self.latest_invoice
        if not isinstance(invoice, dict):
            return None
        confirmation = invoice.get("confirmation_secret")
        if isinstance(confirmation, dict) and isinstance(
            confirmation.get("client_secret"), str
        ):
            return confirmation["client_secret"]
        payment_intent = invoice.get("payment_intent")
        if isinstance(payment_intent, dict) and isinstance(
            payment_intent.get("client_secret"), str
        ):
            return payment_intent["client_secret"]
        return None


class StripeInvoiceData(BaseModel):
    """Stripe invoice object."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    customer: Optional[Any] = None
    subscription: Optional[Any] = None
    parent: Optional[Dict[str, Any]] = None

    def subscription_id(self) -> Optional[str]:
        direct = _object_id(self.subscription)
        if direct:
            return direct
        details = (self.parent or {}).get("subscription_details") or {}
        return _object_id(details.get("subscription"))


class StripeEventData(BaseModel):
    """Stripe event data wrapper."""

    object: Dict[str, Any]


class StripeWebhookPayload(BaseModel):
    """Complete Stripe webhook payload."""

    model_config = ConfigDict(extra="allow")

    id: str
    type: str
    data: StripeEventData
    created: Optional[int] = None
    livemode: bool = False
