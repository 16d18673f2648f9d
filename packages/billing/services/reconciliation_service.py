"""
Keeps platform subscriptions in line with Stripe and with the calendar.

Two inputs converge here: Stripe's subscription object (pushed by webhooks)
and the periodic expiry sweep, which expires subscriptions whose period has
ended and retracts their ledger entries.
"""

from typing import Optional

from common.core.otel_axiom_exporter import trace_span, get_logger, log_span_event
from common.core.results import Failure
from common.core.timeutils import epoch_to_datetime, resolve_now
from common.db.scoped import transaction
from packages.billing.models.domain.reconciliation import SweepSummary
from packages.billing.models.domain.stripe_webhooks import StripeSubscriptionData
from packages.billing.providers.payment.factory import get_payment_provider
from packages.billing.providers.payment.interface import PaymentProviderInterface
from packages.ledger.services.ledger_service import LedgerService
from packages.subscriptions.models.domain.subscription import (
    Subscription,
    SubscriptionBillingUpdate,
)
from packages.subscriptions.repositories.deployment_repository import (
    DeploymentRepository,
)
from packages.subscriptions.repositories.subscription_repository import (
    SubscriptionRepository,
)

logger = get_logger(__name__)

SWEEP_BATCH_SIZE = 500


class ReconciliationService:
    def __init__(self, payment_provider: Optional[PaymentProviderInterface] = None):
        self.payment_provider = payment_provider or get_payment_provider()
        self.subscription_repo = SubscriptionRepository()
        self.deployment_repo = DeploymentRepository()
        self.ledger_service = LedgerService()

    @trace_span
    async def sync_subscription(
        self, stripe_subscription: StripeSubscriptionData, now: Optional[int] = None
    ) -> Optional[Subscription]:
        """
        Apply Stripe's status, renewal flag and period end to the matching
        subscription. Terminal statuses expire the subscription and its
        deployment.

        Returns:
            The updated subscription, or None when Stripe's id is unknown here
        """
        now = resolve_now(now)
        billing = SubscriptionBillingUpdate(
            stripe_status=stripe_subscription.status,
            auto_renew_enabled=stripe_subscription.auto_renew_enabled(),
            current_period_end=stripe_subscription.period_end(),
        )

        async with transaction():
            updated = await self.subscription_repo.apply_billing_update(
                stripe_subscription.id, billing, epoch_to_datetime(now)
            )
            if not updated:
                logger.warning(
                    f"Ignoring unknown Stripe subscription {stripe_subscription.id}",
                    extra={"stripe_subscription_id": stripe_subscription.id},
                )
                return None

            if billing.is_terminal():
                await self.deployment_repo.mark_expired(updated.id)

        logger.info(
            f"Synced subscription {updated.id} from Stripe: {billing.stripe_status}",
            extra={
                "subscription_id": updated.id,
                "stripe_subscription_id": stripe_subscription.id,
                "stripe_status": billing.stripe_status,
                "current_period_end": billing.current_period_end,
            },
        )
        return updated

    @trace_span
    async def sync_subscription_by_id(
        self, stripe_subscription_id: str, now: Optional[int] = None
    ) -> Optional[Subscription]:
        """Fetch a subscription from Stripe, then sync it."""
        stripe_subscription = await self.payment_provider.retrieve_subscription(
            stripe_subscription_id
        )
        return await self.sync_subscription(stripe_subscription, now=now)

    @trace_span
    async def run_expiry_sweep(self, now: Optional[int] = None) -> SweepSummary:
        """
        Expire every subscription whose period ended and retract its ledger
        entry.

        Each subscription is expired in its own transaction. A failure is
        counted and the sweep moves on. Ledger retraction is best-effort: the
        platform record is already expired when it runs.
        """
        now = resolve_now(now)
        now_dt = epoch_to_datetime(now)
        candidates = await self.subscription_repo.find_expiry_candidates(
            now, limit=SWEEP_BATCH_SIZE
        )
        summary = SweepSummary(found=len(candidates))

        for subscription, deployment in candidates:
            try:
                async with transaction():
                    await self.subscription_repo.mark_expired(subscription.id, now_dt)
                    await self.deployment_repo.mark_expired(subscription.id)
            except Exception as e:
                summary.failed += 1
                logger.error(
                    f"Failed to expire subscription {subscription.id}: {e}",
                    extra={"subscription_id": subscription.id, "error": str(e)},
                )
                continue

            summary.processed += 1
            if not deployment.has_owner():
                continue

            try:
                removed = await self.ledger_service.remove_entry(
                    deployment.ledger_user_id, subscription.id
                )
            except Exception as e:
                logger.error(
                    f"Failed to retract ledger entry for {subscription.id}: {e}",
                    extra={
                        "subscription_id": subscription.id,
                        "ledger_user_id": deployment.ledger_user_id,
                        "error": str(e),
                    },
                )
                continue

            if isinstance(removed, Failure):
                logger.warning(
                    f"No ledger entry to retract for {subscription.id}: {removed.error}",
                    extra={
                        "subscription_id": subscription.id,
                        "ledger_user_id": deployment.ledger_user_id,
                    },
                )
            else:
                summary.retracted += 1

        log_span_event(
            f"Expiry sweep finished: {summary.processed}/{summary.found} expired",
            summary.model_dump(),
        )
        return summary
