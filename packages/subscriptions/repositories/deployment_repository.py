from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import select, update

from common.repositories.base import BaseRepository
from common.core.otel_axiom_exporter import trace_span
from packages.subscriptions.models.database.deployment import DeploymentEntity
from packages.subscriptions.models.domain.deployment import Deployment
from packages.subscriptions.models.domain.enums import DeploymentStatus


def _is_terminal(entity: DeploymentEntity) -> bool:
    return DeploymentStatus(entity.status).is_terminal()


class DeploymentRepository(BaseRepository[DeploymentEntity, Deployment]):
    """Repository for the platform-side deployment rows."""

    primary_key = "subscription_id"

    def __init__(self):
        super().__init__(DeploymentEntity, Deployment)

    async def _mutate(
        self, subscription_id: str, apply: Callable[[DeploymentEntity], None]
    ) -> Optional[Deployment]:
        async with self._get_session() as session:
            result = await session.execute(
                select(DeploymentEntity)
                .where(DeploymentEntity.subscription_id == subscription_id)
                .with_for_update()
            )
            entity = result.scalar_one_or_none()
            if not entity:
                return None
            apply(entity)
            await session.flush()
            return self._entity_to_domain(entity)

    @trace_span
    async def claim_for_deploy(
        self, subscription_id: str, ledger_user_id: int, ledger_username: str
    ) -> bool:
        """
        Move an unplaced row to ``deploying`` with its target recorded.

        Conditional on the row still being unclaimed, so of two concurrent
        first deploys only one wins. Returns False for the loser.
        """
        async with self._get_session() as session:
            result = await session.execute(
                update(DeploymentEntity)
                .where(
                    DeploymentEntity.subscription_id == subscription_id,
                    DeploymentEntity.status.in_(
                        [DeploymentStatus.ORDERED.value, DeploymentStatus.DEPLOYING.value]
                    ),
                    DeploymentEntity.ledger_user_id.is_(None),
                )
                .values(
                    status=DeploymentStatus.DEPLOYING.value,
                    ledger_user_id=ledger_user_id,
                    ledger_username=ledger_username,
                )
            )
            await session.flush()
            return result.rowcount == 1

    @trace_span
    async def release_claim(self, subscription_id: str) -> bool:
        """Undo ``claim_for_deploy`` after the ledger rejected the entry."""
        async with self._get_session() as session:
            result = await session.execute(
                update(DeploymentEntity)
                .where(
                    DeploymentEntity.subscription_id == subscription_id,
                    DeploymentEntity.status == DeploymentStatus.DEPLOYING.value,
                )
                .values(
                    status=DeploymentStatus.ORDERED.value,
                    ledger_user_id=None,
                    ledger_username=None,
                )
            )
            await session.flush()
            return result.rowcount == 1

    @trace_span
    async def mark_deployed(
        self,
        subscription_id: str,
        ledger_user_id: int,
        ledger_username: str,
        now: datetime,
    ) -> Optional[Deployment]:
        def apply(entity: DeploymentEntity) -> None:
            if _is_terminal(entity):
                return
            entity.status = DeploymentStatus.DEPLOYED.value
            entity.ledger_user_id = ledger_user_id
            entity.ledger_username = ledger_username
            if entity.deployed_at is None:
                entity.deployed_at = now

        return await self._mutate(subscription_id, apply)

    @trace_span
    async def mark_deactivated(
        self, subscription_id: str, now: datetime
    ) -> Optional[Deployment]:
        def apply(entity: DeploymentEntity) -> None:
            if _is_terminal(entity):
                return
            entity.status = DeploymentStatus.DEACTIVATED.value
            entity.deactivated_at = now

        return await self._mutate(subscription_id, apply)

    @trace_span
    async def mark_transferred(
        self,
        subscription_id: str,
        ledger_user_id: int,
        ledger_username: str,
        now: datetime,
    ) -> Optional[Deployment]:
        def apply(entity: DeploymentEntity) -> None:
            if _is_terminal(entity):
                return
            entity.status = DeploymentStatus.DEPLOYED.value
            entity.ledger_user_id = ledger_user_id
            entity.ledger_username = ledger_username
            entity.transferred_at = now

        return await self._mutate(subscription_id, apply)

    @trace_span
    async def mark_expired(self, subscription_id: str) -> Optional[Deployment]:
        def apply(entity: DeploymentEntity) -> None:
            if entity.status != DeploymentStatus.EXPIRED.value:
                entity.status = DeploymentStatus.EXPIRED.value

        return await self._mutate(subscription_id, apply)
