"""
A redeemed subscription walked through every deployment transition.

Quota is consumed once after the first deploy; no later transition may
reset it.
"""

from common.core.constants import SECONDS_PER_DAY
from packages.ledger.repositories.ledger_user_repository import LedgerUserRepository
from packages.redemption.services.redemption_service import RedemptionService
from packages.subscriptions.models.domain.enums import DeploymentStatus
from packages.subscriptions.repositories.deployment_repository import (
    DeploymentRepository,
)
from packages.subscriptions.repositories.subscription_repository import (
    SubscriptionRepository,
)
from packages.subscriptions.services.deployment_service import DeploymentService
from tests.conftest import ADMIN_ID, NOW

REDEEMER_ID = 2001


async def test_redeem_deploy_deactivate_redeploy_transfer(sample_plan, ledger_users):
    redemption = RedemptionService()
    deployments = DeploymentService()
    ledger = LedgerUserRepository()

    issued = await redemption.issue_code(ADMIN_ID, sample_plan.id, 30, 1, 7, now=NOW)
    redeemed = await redemption.redeem(REDEEMER_ID, issued.token, now=NOW)
    assert redeemed.ok is True
    sub_id = redeemed.subscription_id
    subscription = await SubscriptionRepository().get(sub_id)
    assert subscription.current_period_end == NOW + 30 * SECONDS_PER_DAY

    deployed = await deployments.deploy(REDEEMER_ID, sub_id, "alice", now=NOW + 10)
    assert deployed.ok is True
    assert deployed.entry.limit_5h.available == 1_000_000

    entries = (await ledger.get(7)).entries
    entries[0]["5h_limit"]["available"] = 250_000
    entries[0]["7d_limit"]["available"] = 4_000_000
    await ledger.save_ledger(7, entries)

    def assert_quota_kept(result):
        assert result.ok is True
        assert result.entry.limit_5h.available == 250_000
        assert result.entry.limit_7d.available == 4_000_000

    deactivated = await deployments.deactivate(REDEEMER_ID, sub_id, now=NOW + 20)
    assert_quota_kept(deactivated)
    assert deactivated.entry.status == "deactivated"

    redeployed = await deployments.deploy(REDEEMER_ID, sub_id, "alice", now=NOW + 30)
    assert_quota_kept(redeployed)
    assert redeployed.entry.status == "deployed"

    transferred = await deployments.transfer(REDEEMER_ID, sub_id, "bob", now=NOW + 40)
    assert_quota_kept(transferred)
    assert transferred.entry.owner == 9

    assert (await ledger.get(7)).entries == []
    [entry] = (await ledger.get(9)).entries
    assert entry["5h_limit"]["available"] == 250_000
    assert entry["7d_limit"]["available"] == 4_000_000

    deployment = await DeploymentRepository().get(sub_id)
    assert deployment.status == DeploymentStatus.DEPLOYED
    assert deployment.ledger_user_id == 9
