from typing import Optional

from sqlalchemy import select

from common.repositories.base import BaseRepository
from common.core.otel_axiom_exporter import trace_span
from packages.redemption.models.database.redemption_code import RedemptionRecordEntity
from packages.redemption.models.domain.redemption_code import RedemptionRecord


class RedemptionRecordRepository(
    BaseRepository[RedemptionRecordEntity, RedemptionRecord]
):
    def __init__(self):
        super().__init__(RedemptionRecordEntity, RedemptionRecord)

    @trace_span
    async def get_for_redeemer(
        self, jti: str, redeemed_by_user_id: int
    ) -> Optional[RedemptionRecord]:
        async with self._get_session() as session:
            result = await session.execute(
                select(RedemptionRecordEntity).where(
                    RedemptionRecordEntity.jti == jti,
                    RedemptionRecordEntity.redeemed_by_user_id == redeemed_by_user_id,
                )
            )
            entity = result.scalar_one_or_none()
            return self._entity_to_domain(entity) if entity else None
