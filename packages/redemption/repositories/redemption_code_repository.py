from datetime import datetime
from typing import List

from sqlalchemy import select, update

from common.repositories.base import BaseRepository
from common.core.otel_axiom_exporter import trace_span
from packages.redemption.models.database.redemption_code import RedemptionCodeEntity
from packages.redemption.models.domain.redemption_code import RedemptionCode


class RedemptionCodeRepository(BaseRepository[RedemptionCodeEntity, RedemptionCode]):
    primary_key = "jti"

    def __init__(self):
        super().__init__(RedemptionCodeEntity, RedemptionCode)

    @trace_span
    async def list_recent(self, limit: int) -> List[RedemptionCode]:
        async with self._get_session() as session:
            result = await session.execute(
                select(RedemptionCodeEntity)
                .order_by(
                    RedemptionCodeEntity.created_at.desc(),
                    RedemptionCodeEntity.jti,
                )
                .limit(limit)
            )
            return self._entities_to_domain(result.scalars().all())

    @trace_span
    async def increment_used_count(self, jti: str) -> None:
        async with self._get_session() as session:
            await session.execute(
                update(RedemptionCodeEntity)
                .where(RedemptionCodeEntity.jti == jti)
                .values(used_count=RedemptionCodeEntity.used_count + 1)
            )

    @trace_span
    async def set_revoked(self, jti: str, now: datetime) -> None:
        async with self._get_session() as session:
            await session.execute(
                update(RedemptionCodeEntity)
                .where(
                    RedemptionCodeEntity.jti == jti,
                    RedemptionCodeEntity.revoked_at.is_(None),
                )
                .values(revoked_at=now)
            )
