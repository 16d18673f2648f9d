import pytest
from unittest.mock import AsyncMock, MagicMock, patch


@pytest.fixture
def mock_payment_provider():
    """Create a mock payment provider (Stripe) for testing."""
    provider = MagicMock()
    provider.create_customer = AsyncMock(return_value="cus_test123")
    provider.create_subscription = AsyncMock()
    provider.retrieve_subscription = AsyncMock()
    provider.construct_event = MagicMock()
    return provider


@pytest.fixture(autouse=True)
def mock_get_payment_provider(mock_payment_provider):
    """Automatically mock get_payment_provider for all unit tests."""
    with patch(
        "packages.billing.services.reconciliation_service.get_payment_provider",
        return_value=mock_payment_provider,
    ), patch(
        "packages.billing.services.checkout_service.get_payment_provider",
        return_value=mock_payment_provider,
    ), patch(
        "packages.billing.webhooks.stripe_webhook.get_payment_provider",
        return_value=mock_payment_provider,
    ):
        yield

