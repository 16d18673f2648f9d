"""
Migrations for the platform store only. The ledger store belongs to the
external system and is never migrated from here.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from common.core.config import settings
from common.db.base import Base

# Register platform tables on Base.metadata
from packages.audit.models.database.audit_log import AuditLogEntity  # noqa
from packages.billing.models.database.stripe_event import StripeEventEntity  # noqa
from packages.plans.models.database.plan import PlanEntity  # noqa
from packages.redemption.models.database.redemption_code import (  # noqa
    RedemptionCodeEntity,
    RedemptionRecordEntity,
)
from packages.subscriptions.models.database.deployment import DeploymentEntity  # noqa
from packages.subscriptions.models.database.subscription import (  # noqa
    SubscriptionEntity,
)
from packages.users.models.database.user import UserEntity  # noqa

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

ASYNC_DATABASE_URL = settings.database_url.replace(
    "postgresql://", "postgresql+asyncpg://"
)


def run_migrations_offline() -> None:
    context.configure(
        url=ASYNC_DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    connectable = create_async_engine(ASYNC_DATABASE_URL, poolclass=pool.NullPool)
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


def run_migrations_online() -> None:
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
