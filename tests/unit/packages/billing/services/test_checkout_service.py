"""
Unit tests for CheckoutService with a mocked Stripe provider.
"""

import pytest

from common.core.exceptions import ProviderError
from packages.billing.models.domain.stripe_webhooks import (
    CONFIRMATION_SECRET_EXPAND,
    PAYMENT_INTENT_EXPAND,
    StripeSubscriptionData,
)
from packages.billing.services.checkout_service import CheckoutService
from packages.plans.models.database.plan import PlanEntity
from packages.subscriptions.models.domain.enums import DeploymentStatus
from packages.subscriptions.repositories.deployment_repository import (
    DeploymentRepository,
)
from packages.subscriptions.repositories.subscription_repository import (
    SubscriptionRepository,
)
from packages.users.repositories.user_repository import UserRepository
from tests.conftest import BUYER_ID, NOW, PERIOD_END

PLAN_ID = "pln_basicPlan0000001"


def _stripe_subscription(
    id="sub_1New", status="incomplete", latest_invoice=None
) -> StripeSubscriptionData:
    if latest_invoice is None:
        latest_invoice = {"id": "in_1", "confirmation_secret": {"client_secret": "cs_123"}}
    return StripeSubscriptionData.model_validate(
        {
            "id": id,
            "status": status,
            "customer": "cus_test123",
            "items": {"data": [{"id": "si_1", "current_period_end": PERIOD_END}]},
            "latest_invoice": latest_invoice,
        }
    )


@pytest.fixture
def service(mock_payment_provider):
    return CheckoutService(mock_payment_provider)


class TestStartCheckout:
    async def test_creates_incomplete_subscription(
        self, service, mock_payment_provider, sample_plan
    ):
        mock_payment_provider.create_subscription.return_value = _stripe_subscription()

        result = await service.start_checkout(BUYER_ID, "buyer@example.com", PLAN_ID, now=NOW)

        assert result.ok is True
        assert result.stripe_subscription_id == "sub_1New"
        assert result.client_secret == "cs_123"
        assert result.subscription_id.startswith("sub_")

        mock_payment_provider.create_customer.assert_awaited_once_with(
            BUYER_ID, "buyer@example.com"
        )
        args, kwargs = mock_payment_provider.create_subscription.call_args
        assert args == ("cus_test123", "price_basic")
        assert kwargs["metadata"] == {
            "platform_subscription_id": result.subscription_id,
            "platform_plan_id": PLAN_ID,
            "platform_user_id": str(BUYER_ID),
        }
        assert kwargs["idempotency_key"] == f"subscription_create:{result.subscription_id}"

        subscription = await SubscriptionRepository().get(result.subscription_id)
        assert subscription.stripe_status == "incomplete"
        assert subscription.stripe_customer_id == "cus_test123"
        assert subscription.current_period_end == PERIOD_END
        assert not subscription.is_deployable(NOW)
        deployment = await DeploymentRepository().get(result.subscription_id)
        assert deployment.status == DeploymentStatus.ORDERED

        user = await UserRepository().get(BUYER_ID)
        assert user.stripe_customer_id == "cus_test123"

    async def test_reuses_incomplete_checkout(
        self, service, mock_payment_provider, sample_plan
    ):
        mock_payment_provider.create_subscription.return_value = _stripe_subscription()
        first = await service.start_checkout(BUYER_ID, None, PLAN_ID, now=NOW)
        mock_payment_provider.retrieve_subscription.return_value = _stripe_subscription(
            latest_invoice={"confirmation_secret": {"client_secret": "cs_again"}}
        )

        second = await service.start_checkout(BUYER_ID, None, PLAN_ID, now=NOW + 60)

        assert second.subscription_id == first.subscription_id
        assert second.client_secret == "cs_again"
        assert mock_payment_provider.create_subscription.await_count == 1
        assert mock_payment_provider.create_customer.await_count == 1
        mock_payment_provider.retrieve_subscription.assert_awaited_once_with(
            "sub_1New", expand=[CONFIRMATION_SECRET_EXPAND]
        )

    async def test_stale_incomplete_checkout_is_replaced(
        self, service, mock_payment_provider, sample_plan
    ):
        mock_payment_provider.create_subscription.return_value = _stripe_subscription()
        first = await service.start_checkout(BUYER_ID, None, PLAN_ID, now=NOW)
        mock_payment_provider.retrieve_subscription.return_value = _stripe_subscription(
            status="incomplete_expired"
        )
        mock_payment_provider.create_subscription.return_value = _stripe_subscription(
            id="sub_2New"
        )

        second = await service.start_checkout(BUYER_ID, None, PLAN_ID, now=NOW + 60)

        assert second.subscription_id != first.subscription_id
        assert second.stripe_subscription_id == "sub_2New"

    async def test_payment_intent_fallback(
        self, service, mock_payment_provider, sample_plan
    ):
        mock_payment_provider.create_subscription.return_value = _stripe_subscription(
            latest_invoice="in_1"
        )
        mock_payment_provider.retrieve_subscription.return_value = _stripe_subscription(
            latest_invoice={"payment_intent": {"client_secret": "pi_secret"}}
        )

        result = await service.start_checkout(BUYER_ID, None, PLAN_ID, now=NOW)

        assert result.client_secret == "pi_secret"
        mock_payment_provider.retrieve_subscription.assert_awaited_once_with(
            "sub_1New", expand=[PAYMENT_INTENT_EXPAND]
        )

    async def test_missing_client_secret(self, service, mock_payment_provider, sample_plan):
        mock_payment_provider.create_subscription.return_value = _stripe_subscription(
            latest_invoice="in_1"
        )
        mock_payment_provider.retrieve_subscription.return_value = _stripe_subscription(
            latest_invoice="in_1"
        )

        with pytest.raises(ProviderError):
            await service.start_checkout(BUYER_ID, None, PLAN_ID, now=NOW)

    async def test_unknown_plan(self, service, mock_payment_provider, sample_plan):
        result = await service.start_checkout(BUYER_ID, None, "pln_missing", now=NOW)

        assert result.error == "plan_not_found"
        mock_payment_provider.create_customer.assert_not_awaited()

    async def test_plan_without_price_is_not_purchasable(
        self, service, test_db, mock_payment_provider
    ):
        test_db.add(
            PlanEntity(
                id="pln_grantOnlyPlan001", name="Grant", limit_5h_units=1, limit_7d_units=1
            )
        )
        await test_db.commit()

        result = await service.start_checkout(BUYER_ID, None, "pln_grantOnlyPlan001", now=NOW)

        assert result.error == "plan_not_found"
