"""
Starts paid subscriptions.

Stripe creates the subscription in ``incomplete`` state and the client
confirms the first payment with the returned secret. Activation arrives later
through the webhook.
"""

from typing import Optional, Union

from common.core.exceptions import ProviderError
from common.core.otel_axiom_exporter import trace_span, get_logger
from common.core.results import ErrorCode, Failure, fail
from common.core.security import generate_public_id
from common.core.timeutils import epoch_to_datetime, resolve_now
from common.db.scoped import transaction
from packages.billing.models.domain.reconciliation import CheckoutStarted
from packages.billing.models.domain.stripe_webhooks import (
    CONFIRMATION_SECRET_EXPAND,
    PAYMENT_INTENT_EXPAND,
    StripeSubscriptionData,
)
from packages.billing.providers.payment.factory import get_payment_provider
from packages.billing.providers.payment.interface import PaymentProviderInterface
from packages.plans.repositories.plan_repository import PlanRepository
from packages.subscriptions.models.domain.deployment import DeploymentCreateModel
from packages.subscriptions.models.domain.enums import StripeSubscriptionStatus
from packages.subscriptions.models.domain.subscription import (
    SUBSCRIPTION_ID_PREFIX,
    SubscriptionBillingUpdate,
    SubscriptionCreateModel,
)
from packages.subscriptions.repositories.deployment_repository import (
    DeploymentRepository,
)
from packages.subscriptions.repositories.subscription_repository import (
    SubscriptionRepository,
)
from packages.users.repositories.user_repository import UserRepository

logger = get_logger(__name__)


class CheckoutService:
    def __init__(self, payment_provider: Optional[PaymentProviderInterface] = None):
        self.payment_provider = payment_provider or get_payment_provider()
        self.plan_repo = PlanRepository()
        self.user_repo = UserRepository()
        self.subscription_repo = SubscriptionRepository()
        self.deployment_repo = DeploymentRepository()

    async def _ensure_customer(self, user_id: int, email: Optional[str]) -> str:
        async with transaction():
            user = await self.user_repo.get_or_create(user_id, email)
        if user.stripe_customer_id:
            return user.stripe_customer_id

        customer_id = await self.payment_provider.create_customer(user_id, email)
        async with transaction():
            await self.user_repo.set_stripe_customer_id(user_id, customer_id)
            user = await self.user_repo.get(user_id)
        # A concurrent checkout may have stored its customer first.
        return user.stripe_customer_id or customer_id

    async def _client_secret(self, stripe_subscription: StripeSubscriptionData) -> str:
        secret = stripe_subscription.client_secret()
        if secret:
            return secret

        # Older API versions expose the secret on the invoice's payment intent.
        expanded = await self.payment_provider.retrieve_subscription(
            stripe_subscription.id, expand=[PAYMENT_INTENT_EXPAND]
        )
        secret = expanded.client_secret()
        if not secret:
            raise ProviderError("stripe_missing_client_secret")
        return secret

    @trace_span
    async def start_checkout(
        self,
        user_id: int,
        email: Optional[str],
        plan_id: str,
        now: Optional[int] = None,
    ) -> Union[CheckoutStarted, Failure]:
        """
        Create (or reuse) an incomplete Stripe subscription for a plan.

        Returns:
            CheckoutStarted with the client secret, or Failure(plan_not_found)
        """
        now = resolve_now(now)
        plan = await self.plan_repo.get(plan_id)
        if not plan or not plan.is_purchasable():
            return fail(ErrorCode.PLAN_NOT_FOUND)

        customer_id = await self._ensure_customer(user_id, email)

        existing = await self.subscription_repo.get_latest_incomplete(user_id, plan.id)
        if existing:
            stripe_subscription = await self.payment_provider.retrieve_subscription(
                existing.stripe_subscription_id, expand=[CONFIRMATION_SECRET_EXPAND]
            )
            if stripe_subscription.status == StripeSubscriptionStatus.INCOMPLETE.value:
                client_secret = await self._client_secret(stripe_subscription)
                async with transaction():
                    await self.subscription_repo.apply_billing_update(
                        stripe_subscription.id,
                        SubscriptionBillingUpdate(
                            stripe_status=stripe_subscription.status,
                            auto_renew_enabled=stripe_subscription.auto_renew_enabled(),
                            current_period_end=stripe_subscription.period_end(),
                        ),
                        epoch_to_datetime(now),
                    )
                logger.info(
                    f"Reusing incomplete subscription {existing.id}",
                    extra={"subscription_id": existing.id, "user_id": user_id},
                )
                return CheckoutStarted(
                    subscription_id=existing.id,
                    stripe_subscription_id=stripe_subscription.id,
                    client_secret=client_secret,
                )

        subscription_id = generate_public_id(SUBSCRIPTION_ID_PREFIX)
        stripe_subscription = await self.payment_provider.create_subscription(
            customer_id,
            plan.stripe_price_id,
            metadata={
                "platform_subscription_id": subscription_id,
                "platform_plan_id": plan.id,
                "platform_user_id": str(user_id),
            },
            idempotency_key=f"subscription_create:{subscription_id}",
        )
        client_secret = await self._client_secret(stripe_subscription)

        async with transaction():
            await self.subscription_repo.create(
                SubscriptionCreateModel(
                    id=subscription_id,
                    buyer_user_id=user_id,
                    plan_id=plan.id,
                    stripe_customer_id=customer_id,
                    stripe_subscription_id=stripe_subscription.id,
                    stripe_status=stripe_subscription.status,
                    auto_renew_enabled=stripe_subscription.auto_renew_enabled(),
                    current_period_end=stripe_subscription.period_end(),
                )
            )
            await self.deployment_repo.create(
                DeploymentCreateModel(subscription_id=subscription_id)
            )

        logger.info(
            f"Started checkout for plan {plan.id} as subscription {subscription_id}",
            extra={
                "subscription_id": subscription_id,
                "stripe_subscription_id": stripe_subscription.id,
                "user_id": user_id,
                "plan_id": plan.id,
            },
        )
        return CheckoutStarted(
            subscription_id=subscription_id,
            stripe_subscription_id=stripe_subscription.id,
            client_secret=client_secret,
        )
