from sqlalchemy.exc import IntegrityError

from common.repositories.base import BaseRepository
from common.core.otel_axiom_exporter import trace_span
from packages.billing.models.database.stripe_event import StripeEventEntity
from packages.billing.models.domain.stripe_event import (
    StripeEventCreateModel,
    StripeEventRecord,
)


class StripeEventRepository(BaseRepository[StripeEventEntity, StripeEventRecord]):
    def __init__(self):
        super().__init__(StripeEventEntity, StripeEventRecord)

    @trace_span
    async def record_once(self, event: StripeEventCreateModel) -> bool:
        """
        Store an event unless its id was seen before.

        The insert runs in a savepoint so that losing a concurrent race leaves
        the caller's transaction usable.

        Returns:
            True if this call stored the event, False for a duplicate
        """
        async with self._get_session() as session:
            if await session.get(StripeEventEntity, event.id) is not None:
                return False
            try:
                async with session.begin_nested():
                    session.add(StripeEventEntity(**event.model_dump()))
            except IntegrityError:
                return False
            return True
