"""
Stripe implementation of payment provider.
"""

from typing import Any, Dict, List, Optional
import stripe

from common.core.config import settings
from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.billing.models.domain.stripe_webhooks import (
    CONFIRMATION_SECRET_EXPAND,
    StripeSubscriptionData,
    StripeWebhookPayload,
)
from packages.billing.providers.payment.interface import PaymentProviderInterface

logger = get_logger(__name__)


def _to_dict(stripe_object: Any) -> Dict[str, Any]:
    return stripe_object.to_dict()


class StripePaymentProvider(PaymentProviderInterface):
    """Stripe-based payment implementation."""

    def __init__(self):
        """Initialize Stripe with API credentials."""
        stripe.api_key = settings.stripe_secret_key
        self.webhook_secret = settings.stripe_webhook_secret

    @trace_span
    async def create_customer(self, user_id: int, email: Optional[str] = None) -> str:
        """Create a Stripe customer."""
        try:
            customer = stripe.Customer.create(
                email=email,
                metadata={"platform_user_id": str(user_id)},
            )

            logger.info(
                "Created Stripe customer",
                extra={"user_id": user_id, "customer_id": customer.id},
            )

            return customer.id

        except Exception as e:
            logger.error(
                f"Failed to create Stripe customer: {str(e)}",
                extra={"user_id": user_id, "error": str(e)},
            )
            raise

    @trace_span
    async def create_subscription(
        self,
        customer_id: str,
        price_id: str,
        metadata: Dict[str, str],
        idempotency_key: str,
    ) -> StripeSubscriptionData:
        """Create a Stripe subscription in ``default_incomplete`` payment mode."""
        try:
            subscription = stripe.Subscription.create(
                customer=customer_id,
                items=[{"price": price_id}],
                payment_behavior="default_incomplete",
                payment_settings={"save_default_payment_method": "on_subscription"},
                expand=[CONFIRMATION_SECRET_EXPAND],
                metadata=metadata,
                idempotency_key=idempotency_key,
            )

            logger.info(
                "Created Stripe subscription",
                extra={
                    "customer_id": customer_id,
                    "stripe_subscription_id": subscription.id,
                },
            )

            return StripeSubscriptionData.model_validate(_to_dict(subscription))

        except Exception as e:
            logger.error(
                f"Failed to create subscription: {str(e)}",
                extra={"customer_id": customer_id, "error": str(e)},
            )
            raise

    @trace_span
    async def retrieve_subscription(
        self, subscription_id: str, expand: Optional[List[str]] = None
    ) -> StripeSubscriptionData:
        """Retrieve a Stripe subscription."""
        try:
            if expand:
                subscription = stripe.Subscription.retrieve(
                    subscription_id, expand=expand
                )
            else:
                subscription = stripe.Subscription.retrieve(subscription_id)
            return StripeSubscriptionData.model_validate(_to_dict(subscription))

        except Exception as e:
            logger.error(
                f"Failed to retrieve subscription: {str(e)}",
                extra={"stripe_subscription_id": subscription_id, "error": str(e)},
            )
            raise

    def construct_event(self, payload: bytes, signature: str) -> StripeWebhookPayload:
        event = stripe.Webhook.construct_event(
            payload, signature, self.webhook_secret
        )
        return StripeWebhookPayload.model_validate(_to_dict(event))
