"""
Unit tests for billing API routes.
"""

import stripe

from common.core.exceptions import ProviderError
from packages.billing.models.domain.stripe_webhooks import StripeSubscriptionData
from tests.conftest import PERIOD_END


class TestBillingRoutes:
    async def test_checkout(self, client, mock_payment_provider, sample_plan):
        mock_payment_provider.create_subscription.return_value = (
            StripeSubscriptionData.model_validate(
                {
                    "id": "sub_1New",
                    "status": "incomplete",
                    "items": {"data": [{"current_period_end": PERIOD_END}]},
                    "latest_invoice": {"confirmation_secret": {"client_secret": "cs_1"}},
                }
            )
        )

        response = await client.post(
            "/api/v1/billing/checkout", json={"plan_id": sample_plan.id}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["client_secret"] == "cs_1"
        assert data["stripe_subscription_id"] == "sub_1New"

        listing = (await client.get("/api/v1/subscriptions")).json()
        assert listing[0]["id"] == data["subscription_id"]
        assert listing[0]["stripe_status"] == "incomplete"
        assert listing[0]["can_deploy"] is False

    async def test_checkout_unknown_plan(self, client, sample_plan):
        response = await client.post(
            "/api/v1/billing/checkout", json={"plan_id": "pln_nope"}
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "plan_not_found"

    async def test_checkout_provider_error(
        self, client, mock_payment_provider, sample_plan
    ):
        mock_payment_provider.create_customer.side_effect = ProviderError("down")

        response = await client.post(
            "/api/v1/billing/checkout", json={"plan_id": sample_plan.id}
        )

        assert response.status_code == 502
        assert response.json()["detail"] == "payment_provider_error"

    async def test_checkout_stripe_error(
        self, client, mock_payment_provider, sample_plan
    ):
        mock_payment_provider.create_customer.side_effect = stripe.APIConnectionError(
            "connection refused"
        )

        response = await client.post(
            "/api/v1/billing/checkout", json={"plan_id": sample_plan.id}
        )

        assert response.status_code == 502
        assert response.json()["detail"] == "payment_provider_error"

    async def test_checkout_requires_auth(self, anonymous_client):
        response = await anonymous_client.post(
            "/api/v1/billing/checkout", json={"plan_id": "pln_nope"}
        )
        assert response.status_code == 401
