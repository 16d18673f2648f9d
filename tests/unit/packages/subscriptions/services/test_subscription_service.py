import pytest

from packages.subscriptions.models.domain.enums import DeploymentStatus
from packages.subscriptions.services.deployment_service import DeploymentService
from packages.subscriptions.services.subscription_service import SubscriptionService
from tests.conftest import BUYER_ID, NOW, PERIOD_END


@pytest.fixture
def service():
    return SubscriptionService()


class TestListForUser:
    async def test_empty(self, service, buyer):
        assert await service.list_for_user(BUYER_ID, now=NOW) == []

    async def test_ordered_subscription(self, service, make_subscription):
        sub = await make_subscription()

        [summary] = await service.list_for_user(BUYER_ID, now=NOW)

        assert summary.id == sub.id
        assert summary.plan_name == "Basic"
        assert summary.limit_5h_units == 2.0
        assert summary.current_period_end == PERIOD_END
        assert summary.deployment_status == DeploymentStatus.ORDERED
        assert summary.ledger_entry is None
        assert summary.can_deploy is True

    async def test_overrides_win(self, service, make_subscription):
        await make_subscription(
            custom_plan_name="Partner",
            custom_plan_description="For partners",
            custom_limit_7d_units=3.5,
        )

        [summary] = await service.list_for_user(BUYER_ID, now=NOW)

        assert summary.plan_name == "Partner"
        assert summary.plan_description == "For partners"
        assert summary.limit_5h_units == 2.0
        assert summary.limit_7d_units == 3.5

    async def test_deployed_subscription_includes_ledger_entry(
        self, service, make_subscription, ledger_users
    ):
        sub = await make_subscription()
        await DeploymentService().deploy(BUYER_ID, sub.id, "alice", now=NOW)

        [summary] = await service.list_for_user(BUYER_ID, now=NOW)

        assert summary.deployment_status == DeploymentStatus.DEPLOYED
        assert summary.ledger_username == "alice"
        assert summary.ledger_entry.subscription_id == sub.id
        assert summary.can_deploy is False

    async def test_unpaid_subscription_cannot_deploy(self, service, make_subscription):
        await make_subscription(
            stripe_subscription_id="sub_stripe_1", stripe_status="incomplete"
        )

        [summary] = await service.list_for_user(BUYER_ID, now=NOW)

        assert summary.stripe_status == "incomplete"
        assert summary.can_deploy is False

    async def test_disabled_subscription_cannot_deploy(self, service, make_subscription):
        await make_subscription(status="disabled")

        [summary] = await service.list_for_user(BUYER_ID, now=NOW)

        assert summary.deployment_status == DeploymentStatus.DISABLED
        assert summary.can_deploy is False

    async def test_only_own_subscriptions(self, service, make_subscription):
        await make_subscription()
        assert await service.list_for_user(BUYER_ID + 1, now=NOW) == []
