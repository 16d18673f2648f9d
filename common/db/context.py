"""
Database session context management.

Two independent stores are tracked separately:
- the platform store, with reader/writer separation
- the ledger store (external user database), write sessions only

A transaction on one store never joins a transaction on the other. Inside
``ledger_transaction()`` the platform ContextVars are untouched and vice versa.

Usage:
    # In repositories - auto-manages sessions
    async with get_session() as session:
        result = await session.execute(query)

    # Explicit transaction - multiple ops share one session
    async with transaction():
        await repo.save(thing1)
        await repo.save(thing2)  # Same session, commits together

    # Ledger store read-modify-write under a row lock
    async with ledger_transaction():
        user = await ledger_repo.get_for_update(user_id)
        await ledger_repo.save_ledger(user_id, entries)
"""

from contextvars import ContextVar
from functools import wraps
from typing import Optional, Callable, TypeVar, ParamSpec

from sqlalchemy.ext.asyncio import AsyncSession


# =============================================================================
# Context Variables
# =============================================================================

# Holds the current platform write session (if inside a write transaction)
_write_session: ContextVar[Optional[AsyncSession]] = ContextVar(
    "db_write_session", default=None
)

# Holds the current platform read session (if inside a read transaction)
_read_session: ContextVar[Optional[AsyncSession]] = ContextVar(
    "db_read_session", default=None
)

# Holds the current ledger store session (if inside a ledger transaction)
_ledger_session: ContextVar[Optional[AsyncSession]] = ContextVar(
    "db_ledger_session", default=None
)

# Forces all platform operations in this context to use readonly
_force_readonly: ContextVar[bool] = ContextVar("db_force_readonly", default=False)


# =============================================================================
# Context Accessors
# =============================================================================


def is_readonly_forced() -> bool:
    """Check if current context is forced to readonly."""
    return _force_readonly.get()


def get_current_session(readonly: bool = False) -> Optional[AsyncSession]:
    """
    Get the current platform session from context, if any.

    Args:
        readonly: If True, get read session. If False, get write session.
                  Note: if readonly is forced via decorator, always returns read session.
    """
    effective_readonly = readonly or is_readonly_forced()
    if effective_readonly:
        return _read_session.get()
    return _write_session.get()


def set_current_session(session: AsyncSession, readonly: bool = False) -> object:
    """Set platform session in context. Returns the reset token."""
    if readonly:
        return _read_session.set(session)
    return _write_session.set(session)


def reset_current_session(token: object, readonly: bool = False) -> None:
    """Reset platform session context using token from set_current_session."""
    if readonly:
        _read_session.reset(token)
    else:
        _write_session.reset(token)


def in_transaction(readonly: bool = False) -> bool:
    """Check if we're currently inside a platform transaction."""
    return get_current_session(readonly=readonly) is not None


def get_current_ledger_session() -> Optional[AsyncSession]:
    return _ledger_session.get()


def set_current_ledger_session(session: AsyncSession) -> object:
    return _ledger_session.set(session)


def reset_current_ledger_session(token: object) -> None:
    _ledger_session.reset(token)


def in_ledger_transaction() -> bool:
    return _ledger_session.get() is not None


# =============================================================================
# Decorators
# =============================================================================

P = ParamSpec("P")
T = TypeVar("T")


def readonly(func: Callable[P, T]) -> Callable[P, T]:
    """
    Decorator that forces all platform DB operations in this call chain to use
    readonly sessions.

    Usage:
        @readonly
        async def list_for_user(user_id: int):
            return await subscription_repo.get_by_buyer(user_id)
    """

    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        token = _force_readonly.set(True)
        try:
            return await func(*args, **kwargs)
        finally:
            _force_readonly.reset(token)

    return wrapper

