from typing import Any, Dict, List, Optional

from sqlalchemy import select

from common.repositories.base import BaseRepository
from common.core.otel_axiom_exporter import trace_span
from packages.audit.models.database.audit_log import AuditLogEntity
from packages.audit.models.domain.audit_log import (
    AuditAction,
    AuditLog,
    AuditLogCreateModel,
)


class AuditLogRepository(BaseRepository[AuditLogEntity, AuditLog]):
    def __init__(self):
        super().__init__(AuditLogEntity, AuditLog)

    @trace_span
    async def record(
        self,
        actor_user_id: Optional[int],
        action: AuditAction,
        subject_subscription_id: Optional[str] = None,
        subject_plan_id: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        return await self.create(
            AuditLogCreateModel(
                actor_user_id=actor_user_id,
                action=action,
                subject_subscription_id=subject_subscription_id,
                subject_plan_id=subject_plan_id,
                meta=meta,
            )
        )

    @trace_span
    async def list_by_action(self, action: AuditAction, limit: int = 50) -> List[AuditLog]:
        async with self._get_session() as session:
            result = await session.execute(
                select(AuditLogEntity)
                .where(AuditLogEntity.action == action.value)
                .order_by(AuditLogEntity.id.desc())
                .limit(limit)
            )
            return self._entities_to_domain(result.scalars().all())
