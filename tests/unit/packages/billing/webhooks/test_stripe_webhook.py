"""
Unit tests for the Stripe webhook endpoint.

Signature verification is mocked at the provider; event storage and
reconciliation run against the test database.
"""

from unittest.mock import AsyncMock, patch

import pytest
import stripe

from packages.billing.models.domain.stripe_webhooks import (
    StripeSubscriptionData,
    StripeWebhookPayload,
)
from packages.billing.repositories.stripe_event_repository import (
    StripeEventRepository,
)
from packages.billing.services.reconciliation_service import ReconciliationService
from packages.subscriptions.repositories.subscription_repository import (
    SubscriptionRepository,
)
from tests.conftest import PERIOD_END

URL = "/api/v1/webhooks/stripe"
HEADERS = {"stripe-signature": "t=1,v1=test"}
STRIPE_ID = "sub_1StripeTest"


def _subscription_object(status="active") -> dict:
    return {
        "id": STRIPE_ID,
        "object": "subscription",
        "status": status,
        "cancel_at_period_end": False,
        "items": {"data": [{"id": "si_1", "current_period_end": PERIOD_END}]},
    }


def _event(event_type: str, obj: dict, event_id: str = "evt_1") -> StripeWebhookPayload:
    return StripeWebhookPayload.model_validate(
        {"id": event_id, "type": event_type, "data": {"object": obj}, "livemode": False}
    )


@pytest.fixture
async def paid_subscription(make_subscription):
    return await make_subscription(
        stripe_subscription_id=STRIPE_ID,
        stripe_status="incomplete",
        current_period_end=None,
    )


class TestWebhookVerification:
    async def test_missing_signature(self, anonymous_client, mock_payment_provider):
        response = await anonymous_client.post(URL, content=b"{}")

        assert response.status_code == 400
        mock_payment_provider.construct_event.assert_not_called()

    async def test_invalid_signature(self, anonymous_client, mock_payment_provider):
        mock_payment_provider.construct_event.side_effect = (
            stripe.SignatureVerificationError("No signatures found", "t=1,v1=test")
        )

        response = await anonymous_client.post(URL, content=b"{}", headers=HEADERS)

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid signature"

    async def test_invalid_payload(self, anonymous_client, mock_payment_provider):
        mock_payment_provider.construct_event.side_effect = ValueError("bad json")

        response = await anonymous_client.post(URL, content=b"nope", headers=HEADERS)

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid webhook payload"


class TestWebhookProcessing:
    async def test_subscription_updated(
        self, anonymous_client, mock_payment_provider, paid_subscription
    ):
        mock_payment_provider.construct_event.return_value = _event(
            "customer.subscription.updated", _subscription_object()
        )

        response = await anonymous_client.post(URL, content=b'{"id":"evt_1"}', headers=HEADERS)

        assert response.status_code == 200
        assert response.json() == {"status": "success"}
        subscription = await SubscriptionRepository().get(paid_subscription.id)
        assert subscription.stripe_status == "active"
        assert subscription.current_period_end == PERIOD_END
        stored = await StripeEventRepository().get("evt_1")
        assert stored.type == "customer.subscription.updated"
        assert stored.payload == '{"id":"evt_1"}'

    async def test_duplicate_delivery(
        self, anonymous_client, mock_payment_provider, paid_subscription
    ):
        mock_payment_provider.construct_event.return_value = _event(
            "customer.subscription.updated", _subscription_object()
        )
        await anonymous_client.post(URL, content=b"{}", headers=HEADERS)

        with patch.object(
            ReconciliationService, "sync_subscription", new_callable=AsyncMock
        ) as sync:
            response = await anonymous_client.post(URL, content=b"{}", headers=HEADERS)

        assert response.status_code == 200
        assert response.json() == {"status": "duplicate"}
        sync.assert_not_awaited()

    async def test_handler_failure_leaves_no_record(
        self, anonymous_client, mock_payment_provider, paid_subscription
    ):
        mock_payment_provider.construct_event.return_value = _event(
            "customer.subscription.updated", _subscription_object()
        )

        with patch.object(
            ReconciliationService,
            "sync_subscription",
            new_callable=AsyncMock,
            side_effect=RuntimeError("db down"),
        ):
            response = await anonymous_client.post(URL, content=b"{}", headers=HEADERS)

        assert response.status_code == 500
        assert await StripeEventRepository().get("evt_1") is None

        # Redelivery is processed in full
        response = await anonymous_client.post(URL, content=b"{}", headers=HEADERS)
        assert response.json() == {"status": "success"}
        subscription = await SubscriptionRepository().get(paid_subscription.id)
        assert subscription.stripe_status == "active"

    async def test_subscription_deleted_expires(
        self, anonymous_client, mock_payment_provider, paid_subscription
    ):
        mock_payment_provider.construct_event.return_value = _event(
            "customer.subscription.deleted", _subscription_object("canceled")
        )

        response = await anonymous_client.post(URL, content=b"{}", headers=HEADERS)

        assert response.status_code == 200
        subscription = await SubscriptionRepository().get(paid_subscription.id)
        assert subscription.expired_at is not None

    @pytest.mark.parametrize(
        "invoice",
        [
            {"id": "in_1", "subscription": STRIPE_ID},
            {"id": "in_1", "subscription": {"id": STRIPE_ID, "object": "subscription"}},
            {
                "id": "in_1",
                "parent": {
                    "type": "subscription_details",
                    "subscription_details": {"subscription": STRIPE_ID},
                },
            },
        ],
    )
    async def test_invoice_event_refetches_subscription(
        self, anonymous_client, mock_payment_provider, paid_subscription, invoice
    ):
        mock_payment_provider.construct_event.return_value = _event("invoice.paid", invoice)
        mock_payment_provider.retrieve_subscription.return_value = (
            StripeSubscriptionData.model_validate(_subscription_object())
        )

        response = await anonymous_client.post(URL, content=b"{}", headers=HEADERS)

        assert response.status_code == 200
        mock_payment_provider.retrieve_subscription.assert_awaited_once_with(STRIPE_ID)
        subscription = await SubscriptionRepository().get(paid_subscription.id)
        assert subscription.stripe_status == "active"

    async def test_invoice_without_subscription(
        self, anonymous_client, mock_payment_provider, sample_plan
    ):
        mock_payment_provider.construct_event.return_value = _event(
            "invoice.payment_failed", {"id": "in_oneoff"}
        )

        response = await anonymous_client.post(URL, content=b"{}", headers=HEADERS)

        assert response.status_code == 200
        mock_payment_provider.retrieve_subscription.assert_not_awaited()

    async def test_unhandled_event_is_recorded(self, anonymous_client, mock_payment_provider):
        mock_payment_provider.construct_event.return_value = _event(
            "customer.created", {"id": "cus_1"}
        )

        response = await anonymous_client.post(URL, content=b"{}", headers=HEADERS)

        assert response.status_code == 200
        assert await StripeEventRepository().get("evt_1") is not None

    async def test_unknown_subscription_is_ignored(
        self, anonymous_client, mock_payment_provider, sample_plan
    ):
        mock_payment_provider.construct_event.return_value = _event(
            "customer.subscription.updated", _subscription_object()
        )

        response = await anonymous_client.post(URL, content=b"{}", headers=HEADERS)

        assert response.status_code == 200
