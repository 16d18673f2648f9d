"""
Deployment state machine.

deploy, deactivate and transfer are the only caller-triggered transitions.
Each one mutates the ledger store first, in its own transaction, and then
records the outcome on the platform deployment row. There is no transaction
spanning both stores: when the platform write fails after the ledger
committed, the operation reports ``deployment_record_out_of_sync`` and the
row is left where it was, so repeating the request converges.

A first deploy records its target on the row while moving it to
``deploying``, so a retry after a partial failure can only adopt the entry
already written to that target. Expired and disabled rows are never moved.
"""

from typing import Optional, Union

from sqlalchemy.exc import SQLAlchemyError

from common.core.otel_axiom_exporter import trace_span, get_logger
from common.core.results import ErrorCode, Failure, fail
from common.core.timeutils import epoch_to_datetime, resolve_now
from packages.ledger.models.domain.ledger_entry import LedgerGrant
from packages.ledger.models.domain.ledger_user import LedgerPlacement
from packages.ledger.services.ledger_service import LedgerService
from packages.subscriptions.models.domain.enums import DeploymentStatus
from packages.subscriptions.models.domain.subscription import SubscriptionDetails
from packages.subscriptions.models.schemas.subscription import DeploymentResult
from packages.subscriptions.repositories.deployment_repository import (
    DeploymentRepository,
)
from packages.subscriptions.repositories.subscription_repository import (
    SubscriptionRepository,
)

logger = get_logger(__name__)

DeploymentOutcome = Union[DeploymentResult, Failure]


class DeploymentService:
    """Drives a subscription's placement in the ledger store."""

    def __init__(self):
        self.subscription_repo = SubscriptionRepository()
        self.deployment_repo = DeploymentRepository()
        self.ledger_service = LedgerService()

    async def _load_owned(
        self, user_id: int, subscription_id: str
    ) -> Union[SubscriptionDetails, Failure]:
        details = await self.subscription_repo.get_for_buyer(user_id, subscription_id)
        if not details or not details.deployment:
            return fail(ErrorCode.SUBSCRIPTION_NOT_FOUND)
        if (
            details.subscription.expired_at is not None
            or details.deployment.status.is_terminal()
        ):
            return fail(ErrorCode.SUBSCRIPTION_EXPIRED)
        if details.subscription.current_period_end is None:
            return fail(ErrorCode.MISSING_CURRENT_PERIOD_END)
        return details

    def _result(
        self, subscription_id: str, status: DeploymentStatus, placement: LedgerPlacement
    ) -> DeploymentResult:
        return DeploymentResult(
            subscription_id=subscription_id,
            status=status,
            ledger_user_id=placement.ledger_user_id,
            ledger_username=placement.ledger_username,
            entry=placement.entry,
        )

    def _out_of_sync(
        self, operation: str, subscription_id: str, placement: LedgerPlacement, error: Exception
    ) -> Failure:
        logger.error(
            f"Ledger {operation} committed but deployment record update failed for {subscription_id}: {error}",
            extra={
                "subscription_id": subscription_id,
                "operation": operation,
                "ledger_user_id": placement.ledger_user_id,
                "entry_status": placement.entry.status,
            },
        )
        return fail(ErrorCode.DEPLOYMENT_RECORD_OUT_OF_SYNC)

    @trace_span
    async def deploy(
        self,
        user_id: int,
        subscription_id: str,
        identifier: Optional[str],
        now: Optional[int] = None,
    ) -> DeploymentOutcome:
        now = resolve_now(now)
        details = await self._load_owned(user_id, subscription_id)
        if isinstance(details, Failure):
            return details
        subscription, deployment = details.subscription, details.deployment

        if not subscription.is_deployable(now):
            return fail(ErrorCode.NOT_DEPLOYABLE_UNTIL_SUBSCRIPTION_ACTIVE)

        identifier = (identifier or "").strip()
        if not identifier:
            return fail(ErrorCode.LEDGER_IDENTIFIER_REQUIRED)

        target = await self.ledger_service.resolve_user(identifier)
        if not target:
            return fail(ErrorCode.LEDGER_USER_NOT_FOUND)

        # A row in deploying may already hold a ledger entry for its recorded
        # target, so it only ever retries against that target.
        claimed = False
        if not deployment.has_owner():
            claimed = await self.deployment_repo.claim_for_deploy(
                subscription_id, target.id, target.username
            )
            if not claimed:
                deployment = await self.deployment_repo.get(subscription_id)
                if deployment.status.is_terminal():
                    return fail(ErrorCode.SUBSCRIPTION_EXPIRED)
                if not deployment.has_owner():
                    return fail(ErrorCode.DEPLOYMENT_IN_PROGRESS)
        if deployment.has_owner():
            if target.id != deployment.ledger_user_id:
                return fail(ErrorCode.USE_TRANSFER_FOR_DIFFERENT_TARGET)
            if deployment.status == DeploymentStatus.DEPLOYED:
                return fail(ErrorCode.ALREADY_DEPLOYED)

        grant = LedgerGrant(
            subscription_id=subscription.id,
            plan_id=subscription.plan_id,
            plan_name=details.plan_name,
            limit_5h_units=details.limit_5h_units,
            limit_7d_units=details.limit_7d_units,
            end_at=subscription.current_period_end,
            auto_renew=subscription.auto_renew_enabled,
        )
        placement = await self.ledger_service.deploy_entry(
            str(target.id),
            grant,
            now,
            adopt_existing=deployment.status == DeploymentStatus.DEPLOYING,
        )
        if isinstance(placement, Failure):
            if claimed:
                await self.deployment_repo.release_claim(subscription_id)
            return placement

        try:
            await self.deployment_repo.mark_deployed(
                subscription_id,
                placement.ledger_user_id,
                placement.ledger_username,
                epoch_to_datetime(now),
            )
        except SQLAlchemyError as e:
            return self._out_of_sync("deploy", subscription_id, placement, e)

        logger.info(
            f"Deployed subscription {subscription_id} to ledger user {placement.ledger_user_id}",
            extra={"subscription_id": subscription_id, "user_id": user_id},
        )
        return self._result(subscription_id, DeploymentStatus.DEPLOYED, placement)

    @trace_span
    async def deactivate(
        self, user_id: int, subscription_id: str, now: Optional[int] = None
    ) -> DeploymentOutcome:
        now = resolve_now(now)
        details = await self._load_owned(user_id, subscription_id)
        if isinstance(details, Failure):
            return details
        deployment = details.deployment

        if not deployment.is_placed():
            return fail(ErrorCode.NOT_DEPLOYED)

        placement = await self.ledger_service.deactivate_entry(
            deployment.ledger_user_id, subscription_id
        )
        if isinstance(placement, Failure):
            return placement

        try:
            await self.deployment_repo.mark_deactivated(
                subscription_id, epoch_to_datetime(now)
            )
        except SQLAlchemyError as e:
            return self._out_of_sync("deactivate", subscription_id, placement, e)

        logger.info(
            f"Deactivated subscription {subscription_id} on ledger user {placement.ledger_user_id}",
            extra={"subscription_id": subscription_id, "user_id": user_id},
        )
        return self._result(subscription_id, DeploymentStatus.DEACTIVATED, placement)

    @trace_span
    async def transfer(
        self,
        user_id: int,
        subscription_id: str,
        identifier: Optional[str],
        now: Optional[int] = None,
    ) -> DeploymentOutcome:
        now = resolve_now(now)
        details = await self._load_owned(user_id, subscription_id)
        if isinstance(details, Failure):
            return details
        subscription, deployment = details.subscription, details.deployment

        if not deployment.is_placed():
            return fail(ErrorCode.NOT_DEPLOYED)

        if not subscription.is_deployable(now):
            return fail(ErrorCode.NOT_TRANSFERABLE_UNTIL_SUBSCRIPTION_ACTIVE)

        identifier = (identifier or "").strip()
        if not identifier:
            return fail(ErrorCode.LEDGER_IDENTIFIER_REQUIRED)

        placement = await self.ledger_service.transfer_entry(
            deployment.ledger_user_id,
            identifier,
            subscription_id,
            now,
            subscription.current_period_end,
            subscription.auto_renew_enabled,
        )
        if isinstance(placement, Failure):
            return placement

        try:
            await self.deployment_repo.mark_transferred(
                subscription_id,
                placement.ledger_user_id,
                placement.ledger_username,
                epoch_to_datetime(now),
            )
        except SQLAlchemyError as e:
            return self._out_of_sync("transfer", subscription_id, placement, e)

        logger.info(
            f"Transferred subscription {subscription_id} to ledger user {placement.ledger_user_id}",
            extra={"subscription_id": subscription_id, "user_id": user_id},
        )
        return self._result(subscription_id, DeploymentStatus.DEPLOYED, placement)
