from typing import Optional

from sqlalchemy import update

from common.repositories.base import BaseRepository
from packages.users.models.database.user import UserEntity
from packages.users.models.domain.user import User, UserCreateModel
from common.core.otel_axiom_exporter import trace_span


class UserRepository(BaseRepository[UserEntity, User]):
    def __init__(self):
        super().__init__(UserEntity, User)

    @trace_span
    async def get_or_create(self, user_id: int, email: Optional[str] = None) -> User:
        """Return the platform user, creating the row on first contact."""
        user = await self.get(user_id)
        if user:
            return user
        return await self.create(UserCreateModel(id=user_id, email=email))

    @trace_span
    async def set_stripe_customer_id(self, user_id: int, customer_id: str) -> None:
        """Store the Stripe customer id unless one is already recorded."""
        async with self._get_session() as session:
            await session.execute(
                update(UserEntity)
                .where(
                    UserEntity.id == user_id,
                    UserEntity.stripe_customer_id.is_(None),
                )
                .values(stripe_customer_id=customer_id)
            )
