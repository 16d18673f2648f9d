import pytest

from common.db.scoped import transaction
from packages.users.repositories.user_repository import UserRepository
from tests.conftest import BUYER_ID


class TestUserRepository:
    """Test UserRepository methods."""

    @pytest.fixture
    async def repository(self):
        return UserRepository()

    async def test_get_or_create_creates_once(self, repository):
        created = await repository.get_or_create(BUYER_ID, "buyer@example.com")
        again = await repository.get_or_create(BUYER_ID, "other@example.com")

        assert created.id == BUYER_ID
        assert again.email == "buyer@example.com"
        assert again.stripe_customer_id is None

    async def test_get_or_create_existing(self, repository, buyer):
        user = await repository.get_or_create(BUYER_ID)
        assert user.email == "buyer@example.com"

    async def test_stripe_customer_is_set_once(self, repository, buyer):
        async with transaction():
            await repository.set_stripe_customer_id(BUYER_ID, "cus_first")
        async with transaction():
            await repository.set_stripe_customer_id(BUYER_ID, "cus_second")

        user = await repository.get(BUYER_ID)
        assert user.stripe_customer_id == "cus_first"

    async def test_base_repository_reads_and_creates_only(self, repository, buyer):
        assert (await repository.get_for_update(BUYER_ID)).id == BUYER_ID
        assert await repository.get(BUYER_ID + 1) is None
        assert not hasattr(repository, "update")
