import re
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from common.core.otel_axiom_exporter import trace_span
from common.db.scoped import get_ledger_session
from common.repositories.base import BaseRepository
from packages.ledger.entries import normalize_ledger, serialize_ledger
from packages.ledger.models.database.ledger_user import LedgerUserEntity
from packages.ledger.models.domain.ledger_entry import LedgerGroup
from packages.ledger.models.domain.ledger_user import LedgerUser

_NUMERIC_IDENTIFIER = re.compile(r"^[0-9]+$")


class LedgerUserRepository(BaseRepository[LedgerUserEntity, LedgerUser]):
    """
    Load/normalize/save access to the external user rows.

    The ledger column is treated as an opaque blob: it is decoded on load and
    always written back in full. Locking reads only hold their lock when called
    inside ``ledger_transaction()``.
    """

    def __init__(self):
        super().__init__(LedgerUserEntity, LedgerUser)

    @asynccontextmanager
    async def _get_session(self) -> AsyncGenerator[AsyncSession, None]:
        async with get_ledger_session() as session:
            yield session

    def _entity_to_domain(self, entity: LedgerUserEntity) -> LedgerUser:
        return LedgerUser(
            id=entity.id,
            username=entity.username,
            group=entity.group,
            entries=normalize_ledger(entity.subscription_data),
        )

    @trace_span
    async def find_by_identifier(
        self, identifier: Optional[str], for_update: bool = False
    ) -> Optional[LedgerUser]:
        """
        Resolve an external user. Purely numeric identifiers are ids, anything
        else is a username. Blank identifiers resolve to None without a query.
        """
        value = (identifier or "").strip()
        if not value:
            return None

        if _NUMERIC_IDENTIFIER.match(value):
            query = select(LedgerUserEntity).where(LedgerUserEntity.id == int(value))
        else:
            query = select(LedgerUserEntity).where(LedgerUserEntity.username == value)
        if for_update:
            query = query.with_for_update()

        async with self._get_session() as session:
            result = await session.execute(query.limit(1))
            entity = result.scalar_one_or_none()
            return self._entity_to_domain(entity) if entity else None

    @trace_span
    async def save_ledger(
        self,
        user_id: int,
        entries: List[Any],
        group: Optional[LedgerGroup] = None,
    ) -> None:
        """Write the full ledger array back, optionally with a new group label."""
        values = {"subscription_data": serialize_ledger(entries)}
        if group is not None:
            values["group"] = group.value
        async with self._get_session() as session:
            await session.execute(
                update(LedgerUserEntity)
                .where(LedgerUserEntity.id == user_id)
                .values(**values)
            )
            await session.flush()
