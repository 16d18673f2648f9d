"""
Ledger store dialect selection.

The ledger store may be MySQL/MariaDB or PostgreSQL. The dialect is chosen
once from the connection URL scheme; everything past that point (placeholder
style, quoting of reserved identifiers such as ``group``) is left to the
SQLAlchemy dialect bound to the engine.
"""

from dataclasses import dataclass
from typing import Any, Dict

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from common.core.constants import LedgerDialect
from common.core.exceptions import ConfigurationError

_SCHEME_DIALECTS = {
    "mysql": LedgerDialect.MYSQL,
    "mariadb": LedgerDialect.MYSQL,
    "postgres": LedgerDialect.POSTGRESQL,
    "postgresql": LedgerDialect.POSTGRESQL,
}

_ASYNC_DRIVERS = {
    LedgerDialect.MYSQL: "mysql+aiomysql",
    LedgerDialect.POSTGRESQL: "postgresql+asyncpg",
}


@dataclass(frozen=True)
class LedgerConnection:
    dialect: LedgerDialect
    async_url: str


def resolve_ledger_dialect(url: str) -> LedgerConnection:
    """
    Pick the ledger dialect and async driver from a connection URL.

    Accepts ``mysql://``, ``mariadb://``, ``postgres://`` and ``postgresql://``
    (optionally with an explicit ``+driver`` suffix, which is replaced).

    Raises:
        ConfigurationError: empty URL or unsupported scheme
    """
    if not url or not url.strip():
        raise ConfigurationError("Ledger database URL is not configured")

    try:
        parsed = make_url(url.strip())
    except ArgumentError as e:
        raise ConfigurationError(f"Invalid ledger database URL: {e}") from e

    scheme = parsed.drivername.split("+", 1)[0].lower()
    dialect = _SCHEME_DIALECTS.get(scheme)
    if dialect is None:
        raise ConfigurationError(f"Unsupported ledger database scheme: {scheme}")

    async_url = parsed.set(drivername=_ASYNC_DRIVERS[dialect])
    return LedgerConnection(
        dialect=dialect,
        async_url=async_url.render_as_string(hide_password=False),
    )


def ledger_engine_kwargs(
    dialect: LedgerDialect, pool_size: int, max_overflow: int
) -> Dict[str, Any]:
    """Engine options for the ledger store."""
    kwargs: Dict[str, Any] = {
        "pool_pre_ping": True,
        "pool_recycle": 3600,
        "pool_size": pool_size,
        "max_overflow": max_overflow,
    }
    if dialect == LedgerDialect.MYSQL:
        kwargs["connect_args"] = {"charset": "utf8mb4"}
    return kwargs
