from uuid import uuid4

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy import pool
from common.core.config import settings
from common.core.otel_axiom_exporter import get_logger
from common.db.dialects import resolve_ledger_dialect, ledger_engine_kwargs

logger = get_logger(__name__)

# =============================================================================
# Platform store
# =============================================================================

# Replace postgresql:// with postgresql+asyncpg:// for async support
ASYNC_DATABASE_URL = settings.database_url.replace(
    "postgresql://", "postgresql+asyncpg://"
)

# Configure engine based on pool type
# NullPool (db_use_nullpool=True): No pooling, new connection per operation (for workers)
# Default pool: Connection pooling (for API servers with concurrent requests)
engine_kwargs = {
    "echo": settings.debug,
    "pool_pre_ping": True,
    "pool_recycle": 3600,
    "connect_args": {
        "prepared_statement_name_func": lambda: f"__asyncpg_{uuid4()}__",
    },
}

if settings.db_use_nullpool:
    logger.info("Using NullPool - no connection pooling (worker mode)")
    engine_kwargs["poolclass"] = pool.NullPool
else:
    logger.info(
        f"Using connection pooling - pool_size={settings.db_pool_size}, max_overflow={settings.db_pool_overflow}"
    )
    engine_kwargs["pool_size"] = settings.db_pool_size
    engine_kwargs["max_overflow"] = settings.db_pool_overflow

engine = create_async_engine(ASYNC_DATABASE_URL, **engine_kwargs)
AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

# Same engine until a read replica exists
AsyncSessionLocalReadonly = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

# =============================================================================
# Ledger store (external user database, separately transacted)
# =============================================================================

ledger_connection = resolve_ledger_dialect(settings.ledger_database_url)
logger.info(f"Ledger store dialect: {ledger_connection.dialect.value}")

ledger_engine = create_async_engine(
    ledger_connection.async_url,
    echo=settings.debug,
    **ledger_engine_kwargs(
        ledger_connection.dialect,
        settings.ledger_pool_size,
        settings.ledger_pool_overflow,
    ),
)
LedgerSessionLocal = async_sessionmaker(
    ledger_engine, class_=AsyncSession, expire_on_commit=False
)

async def dispose_engines():
    """Release pooled connections of both stores."""
    await engine.dispose()
    await ledger_engine.dispose()
