from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from common.core.otel_axiom_exporter import trace_span, get_logger
from common.core.timeutils import resolve_now
from common.db.context import readonly
from packages.ledger.services.ledger_service import LedgerService
from packages.subscriptions.models.domain.enums import DeploymentStatus
from packages.subscriptions.models.domain.subscription import SubscriptionDetails
from packages.subscriptions.models.schemas.subscription import SubscriptionSummary
from packages.subscriptions.repositories.subscription_repository import (
    SubscriptionRepository,
)

logger = get_logger(__name__)


class SubscriptionService:
    """Read side of subscriptions for their buyers."""

    def __init__(self):
        self.subscription_repo = SubscriptionRepository()
        self.ledger_service = LedgerService()

    @readonly
    async def _load(self, user_id: int) -> List[SubscriptionDetails]:
        return await self.subscription_repo.list_for_buyer(user_id)

    @trace_span
    async def list_for_user(
        self, user_id: int, now: Optional[int] = None
    ) -> List[SubscriptionSummary]:
        """
        All subscriptions of a buyer with effective plan values and, for
        deployed ones, the live ledger entry.
        """
        now = resolve_now(now)
        summaries = []
        for details in await self._load(user_id):
            subscription, deployment = details.subscription, details.deployment

            ledger_entry = None
            if deployment and deployment.has_owner():
                try:
                    ledger_entry = await self.ledger_service.get_entry(
                        deployment.ledger_user_id, subscription.id
                    )
                except SQLAlchemyError as e:
                    logger.warning(
                        f"Could not read ledger entry for {subscription.id}: {e}",
                        extra={"subscription_id": subscription.id},
                    )

            summaries.append(
                SubscriptionSummary(
                    id=subscription.id,
                    plan_id=subscription.plan_id,
                    plan_name=details.plan_name,
                    plan_description=details.plan_description,
                    limit_5h_units=details.limit_5h_units,
                    limit_7d_units=details.limit_7d_units,
                    stripe_status=subscription.stripe_status,
                    auto_renew_enabled=subscription.auto_renew_enabled,
                    current_period_end=subscription.current_period_end,
                    expired_at=subscription.expired_at,
                    redeemed_code_jti=subscription.redeemed_code_jti,
                    deployment_status=deployment.status if deployment else None,
                    ledger_user_id=deployment.ledger_user_id if deployment else None,
                    ledger_username=deployment.ledger_username if deployment else None,
                    ledger_entry=ledger_entry,
                    can_deploy=subscription.is_deployable(now)
                    and (
                        deployment is None
                        or (
                            deployment.status != DeploymentStatus.DEPLOYED
                            and not deployment.status.is_terminal()
                        )
                    ),
                )
            )
        return summaries
