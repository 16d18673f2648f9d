from typing import List

from sqlalchemy import select

from common.repositories.base import BaseRepository
from common.core.otel_axiom_exporter import trace_span
from packages.plans.models.database.plan import PlanEntity
from packages.plans.models.domain.plan import Plan


class PlanRepository(BaseRepository[PlanEntity, Plan]):
    def __init__(self):
        super().__init__(PlanEntity, Plan)

    @trace_span
    async def list_visible(self) -> List[Plan]:
        """Active, non-hidden plans ordered by creation."""
        async with self._get_session() as session:
            result = await session.execute(
                select(PlanEntity)
                .where(PlanEntity.is_active == True, PlanEntity.is_hidden == False)  # noqa
                .order_by(PlanEntity.created_at, PlanEntity.id)
            )
            return self._entities_to_domain(result.scalars().all())
