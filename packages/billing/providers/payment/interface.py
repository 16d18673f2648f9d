"""
Interface for payment providers.

Abstracts payment processing away from the Stripe SDK so services and tests
never talk to it directly.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from packages.billing.models.domain.stripe_webhooks import (
    StripeSubscriptionData,
    StripeWebhookPayload,
)


class PaymentProviderInterface(ABC):
    """Abstract interface for payment providers."""

    @abstractmethod
    async def create_customer(self, user_id: int, email: Optional[str] = None) -> str:
        """
        Create a customer in the payment provider.

        Args:
            user_id: Platform user id, stored as ``platform_user_id`` metadata
            email: Customer email

        Returns:
            customer_id: Payment provider customer ID
        """
        pass

    @abstractmethod
    async def create_subscription(
        self,
        customer_id: str,
        price_id: str,
        metadata: Dict[str, str],
        idempotency_key: str,
    ) -> StripeSubscriptionData:
        """
        Create an incomplete subscription awaiting its first payment.

        The returned subscription has its latest invoice expanded so the
        payment client secret can be read from it.
        """
        pass

    @abstractmethod
    async def retrieve_subscription(
        self, subscription_id: str, expand: Optional[List[str]] = None
    ) -> StripeSubscriptionData:
        """Fetch the provider's current view of a subscription."""
        pass

    @abstractmethod
    def construct_event(self, payload: bytes, signature: str) -> StripeWebhookPayload:
        """
        Verify a webhook signature and parse the event.

        Raises:
            stripe.error.SignatureVerificationError: signature does not match
            ValueError: payload is not a valid event
        """
        pass
