from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select

from common.repositories.base import BaseRepository
from common.core.otel_axiom_exporter import trace_span
from packages.plans.models.database.plan import PlanEntity
from packages.plans.models.domain.plan import Plan
from packages.subscriptions.models.database.deployment import DeploymentEntity
from packages.subscriptions.models.database.subscription import SubscriptionEntity
from packages.subscriptions.models.domain.deployment import Deployment
from packages.subscriptions.models.domain.enums import (
    DeploymentStatus,
    StripeSubscriptionStatus,
)
from packages.subscriptions.models.domain.subscription import (
    Subscription,
    SubscriptionBillingUpdate,
    SubscriptionDetails,
)


class SubscriptionRepository(BaseRepository[SubscriptionEntity, Subscription]):
    """Repository for subscription data access."""

    def __init__(self):
        super().__init__(SubscriptionEntity, Subscription)

    def _details_query(self):
        return (
            select(SubscriptionEntity, PlanEntity, DeploymentEntity)
            .join(PlanEntity, PlanEntity.id == SubscriptionEntity.plan_id)
            .outerjoin(
                DeploymentEntity,
                DeploymentEntity.subscription_id == SubscriptionEntity.id,
            )
        )

    def _row_to_details(self, row) -> SubscriptionDetails:
        subscription, plan, deployment = row
        return SubscriptionDetails(
            subscription=self._entity_to_domain(subscription),
            plan=Plan.model_validate(plan),
            deployment=Deployment.model_validate(deployment) if deployment else None,
        )

    @trace_span
    async def get_for_buyer(
        self, buyer_user_id: int, subscription_id: str
    ) -> Optional[SubscriptionDetails]:
        """Subscription with plan and deployment, only if owned by the buyer."""
        async with self._get_session() as session:
            result = await session.execute(
                self._details_query().where(
                    SubscriptionEntity.id == subscription_id,
                    SubscriptionEntity.buyer_user_id == buyer_user_id,
                )
            )
            row = result.first()
            return self._row_to_details(row) if row else None

    @trace_span
    async def list_for_buyer(self, buyer_user_id: int) -> List[SubscriptionDetails]:
        async with self._get_session() as session:
            result = await session.execute(
                self._details_query()
                .where(SubscriptionEntity.buyer_user_id == buyer_user_id)
                .order_by(SubscriptionEntity.created_at.desc(), SubscriptionEntity.id)
            )
            return [self._row_to_details(row) for row in result.all()]

    @trace_span
    async def get_latest_incomplete(
        self, buyer_user_id: int, plan_id: str
    ) -> Optional[Subscription]:
        """Most recent unpaid Stripe subscription of this buyer for this plan."""
        async with self._get_session() as session:
            result = await session.execute(
                select(SubscriptionEntity)
                .where(
                    SubscriptionEntity.buyer_user_id == buyer_user_id,
                    SubscriptionEntity.plan_id == plan_id,
                    SubscriptionEntity.stripe_subscription_id.is_not(None),
                    SubscriptionEntity.stripe_status
                    == StripeSubscriptionStatus.INCOMPLETE.value,
                    SubscriptionEntity.expired_at.is_(None),
                )
                .order_by(SubscriptionEntity.created_at.desc())
                .limit(1)
            )
            entity = result.scalar_one_or_none()
            return self._entity_to_domain(entity) if entity else None

    @trace_span
    async def apply_billing_update(
        self,
        stripe_subscription_id: str,
        billing: SubscriptionBillingUpdate,
        now: datetime,
    ) -> Optional[Subscription]:
        """
        Write Stripe's view of the subscription. Terminal statuses set
        ``expired_at`` unless it is already set. Once expired, only terminal
        statuses are written.
        """
        async with self._get_session() as session:
            result = await session.execute(
                select(SubscriptionEntity)
                .where(
                    SubscriptionEntity.stripe_subscription_id == stripe_subscription_id
                )
                .with_for_update()
            )
            entity = result.scalar_one_or_none()
            if not entity:
                return None

            # Expiry is final. A late non-terminal event must not revive the row.
            if entity.expired_at is not None and not billing.is_terminal():
                return self._entity_to_domain(entity)

            entity.stripe_status = billing.stripe_status
            entity.auto_renew_enabled = billing.auto_renew_enabled
            entity.current_period_end = billing.current_period_end
            if billing.is_terminal() and entity.expired_at is None:
                entity.expired_at = now
            await session.flush()
            return self._entity_to_domain(entity)

    @trace_span
    async def mark_expired(self, subscription_id: str, now: datetime) -> bool:
        """Set ``expired_at`` once. Returns False if the subscription does not exist."""
        async with self._get_session() as session:
            result = await session.execute(
                select(SubscriptionEntity)
                .where(SubscriptionEntity.id == subscription_id)
                .with_for_update()
            )
            entity = result.scalar_one_or_none()
            if not entity:
                return False
            if entity.expired_at is None:
                entity.expired_at = now
                await session.flush()
            return True

    @trace_span
    async def find_expiry_candidates(
        self, now: int, limit: int = 500
    ) -> List[Tuple[Subscription, Deployment]]:
        """Unexpired subscriptions whose period has ended and whose deployment is still live."""
        async with self._get_session() as session:
            result = await session.execute(
                select(SubscriptionEntity, DeploymentEntity)
                .join(
                    DeploymentEntity,
                    DeploymentEntity.subscription_id == SubscriptionEntity.id,
                )
                .where(
                    SubscriptionEntity.expired_at.is_(None),
                    SubscriptionEntity.current_period_end.is_not(None),
                    SubscriptionEntity.current_period_end <= now,
                    DeploymentEntity.status.not_in(
                        [DeploymentStatus.EXPIRED.value, DeploymentStatus.DISABLED.value]
                    ),
                )
                .order_by(SubscriptionEntity.current_period_end)
                .limit(limit)
            )
            return [
                (self._entity_to_domain(sub), Deployment.model_validate(dep))
                for sub, dep in result.all()
            ]
