"""
Operation-scoped database sessions for both stores.

Provides lazy session acquisition that releases connections immediately
after each operation, preventing connection holding during external calls
(Stripe, the other store, etc.)

Usage:
    # Single operation - acquires and releases immediately
    async with get_session() as session:
        result = await session.get(Model, id)

    # Multiple operations in a transaction - share one session
    async with transaction():
        await repo.save(thing1)
        await repo.save(thing2)

    # Ledger store, always an explicit transaction around read-modify-write
    async with ledger_transaction():
        ...

There is no transaction spanning both stores. Callers that touch both commit
the ledger store first and the platform store second.

See also:
    - common/db/context.py: ContextVars and the @readonly decorator
    - common/db/session.py: engines and session factories
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from common.core.otel_axiom_exporter import get_logger
from common.db.session import (
    AsyncSessionLocal,
    AsyncSessionLocalReadonly,
    LedgerSessionLocal,
)
from common.db.context import (
    get_current_session,
    set_current_session,
    reset_current_session,
    is_readonly_forced,
    get_current_ledger_session,
    set_current_ledger_session,
    reset_current_ledger_session,
)

logger = get_logger(__name__)


@asynccontextmanager
async def transaction(readonly: bool = False) -> AsyncGenerator[AsyncSession, None]:
    """
    Explicit platform transaction boundary.

    All DB operations inside share one session/connection.
    Commits on success (unless readonly), rolls back on exception.

    Args:
        readonly: If True, uses readonly session and skips commit.
                  Also respects @readonly decorator if applied to caller.

    Raises:
        Exception: Re-raises any exception after rollback
    """
    effective_readonly = readonly or is_readonly_forced()
    existing = get_current_session(readonly=effective_readonly)
    if existing:
        # Nested transaction() joins the outer one
        yield existing
        return

    session_factory = (
        AsyncSessionLocalReadonly if effective_readonly else AsyncSessionLocal
    )

    start = time.perf_counter()
    async with session_factory() as session:
        acquire_time = time.perf_counter() - start
        logger.debug(
            f"Transaction session acquire: {acquire_time * 1000:.2f}ms, readonly={effective_readonly}"
        )

        token = set_current_session(session, readonly=effective_readonly)
        try:
            yield session
            if not effective_readonly:
                commit_start = time.perf_counter()
                await session.commit()
                commit_time = time.perf_counter() - commit_start
                logger.debug(f"Transaction commit: {commit_time * 1000:.2f}ms")
        except Exception as e:
            logger.error(f"Transaction rollback due to: {e}")
            await session.rollback()
            raise
        finally:
            reset_current_session(token, readonly=effective_readonly)


@asynccontextmanager
async def get_session(readonly: bool = False) -> AsyncGenerator[AsyncSession, None]:
    """
    Get a platform session for a single DB operation.

    Reuses the session if inside a transaction() block. Otherwise acquires a
    new session, auto-commits, and releases immediately.

    Args:
        readonly: If True, uses readonly session (for read replicas).
                  Also respects @readonly decorator if applied to caller.
    """
    effective_readonly = readonly or is_readonly_forced()
    existing = get_current_session(readonly=effective_readonly)

    if existing:
        # Inside a transaction - reuse session, don't commit (transaction handles it)
        yield existing
    else:
        session_factory = (
            AsyncSessionLocalReadonly if effective_readonly else AsyncSessionLocal
        )

        start = time.perf_counter()
        async with session_factory() as session:
            acquire_time = time.perf_counter() - start
            logger.debug(
                f"Operation session acquire: {acquire_time * 1000:.2f}ms, readonly={effective_readonly}"
            )

            try:
                yield session
                if not effective_readonly:
                    await session.commit()
            except Exception as e:
                logger.error(f"Operation rollback due to: {e}")
                await session.rollback()
                raise


@asynccontextmanager
async def ledger_transaction() -> AsyncGenerator[AsyncSession, None]:
    """
    Explicit ledger store transaction boundary.

    Row locks taken with ``SELECT ... FOR UPDATE`` inside are held until the
    block exits. Commits on success, rolls back on exception. Nested calls
    join the outer transaction.
    """
    existing = get_current_ledger_session()
    if existing:
        yield existing
        return

    start = time.perf_counter()
    async with LedgerSessionLocal() as session:
        acquire_time = time.perf_counter() - start
        logger.debug(f"Ledger session acquire: {acquire_time * 1000:.2f}ms")

        token = set_current_ledger_session(session)
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.error(f"Ledger transaction rollback due to: {e}")
            await session.rollback()
            raise
        finally:
            reset_current_ledger_session(token)


@asynccontextmanager
async def get_ledger_session() -> AsyncGenerator[AsyncSession, None]:
    """Ledger store session for a single read; reuses an open ledger transaction."""
    existing = get_current_ledger_session()
    if existing:
        yield existing
        return

    async with LedgerSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.error(f"Ledger operation rollback due to: {e}")
            await session.rollback()
            raise
