import pytest
from sqlalchemy import select
from sqlalchemy.dialects import mysql, postgresql

from common.core.constants import LedgerDialect
from common.core.exceptions import ConfigurationError
from common.db.dialects import ledger_engine_kwargs, resolve_ledger_dialect
from packages.ledger.models.database.ledger_user import LedgerUserEntity


class TestResolveLedgerDialect:
    @pytest.mark.parametrize(
        "url,dialect,prefix",
        [
            ("mysql://u:p@db:3306/ledger", LedgerDialect.MYSQL, "mysql+aiomysql://"),
            ("mariadb://u:p@db/ledger", LedgerDialect.MYSQL, "mysql+aiomysql://"),
            ("mysql+pymysql://u:p@db/ledger", LedgerDialect.MYSQL, "mysql+aiomysql://"),
            ("postgres://u:p@db/ledger", LedgerDialect.POSTGRESQL, "postgresql+asyncpg://"),
            (
                "postgresql://u:p@db:5432/ledger",
                LedgerDialect.POSTGRESQL,
                "postgresql+asyncpg://",
            ),
        ],
    )
    def test_scheme_selects_driver(self, url, dialect, prefix):
        connection = resolve_ledger_dialect(url)

        assert connection.dialect == dialect
        assert connection.async_url.startswith(prefix)

    def test_password_is_kept(self):
        connection = resolve_ledger_dialect("mysql://user:s3cret@db/ledger")
        assert "user:s3cret@db" in connection.async_url

    @pytest.mark.parametrize("url", ["", "   ", "sqlite:///ledger.db", "oracle://db/x"])
    def test_unsupported(self, url):
        with pytest.raises(ConfigurationError):
            resolve_ledger_dialect(url)

    def test_mysql_engine_uses_utf8mb4(self):
        kwargs = ledger_engine_kwargs(LedgerDialect.MYSQL, 5, 2)

        assert kwargs["connect_args"] == {"charset": "utf8mb4"}
        assert kwargs["pool_size"] == 5
        assert kwargs["max_overflow"] == 2
        assert "connect_args" not in ledger_engine_kwargs(LedgerDialect.POSTGRESQL, 5, 2)


class TestGroupColumnQuoting:
    """``group`` is reserved on both dialects and must be quoted by the dialect."""

    def _compile(self, dialect) -> str:
        query = select(LedgerUserEntity.group).where(LedgerUserEntity.id == 1)
        return str(query.compile(dialect=dialect))

    def test_mysql_uses_backticks(self):
        assert "`group`" in self._compile(mysql.dialect())

    def test_postgresql_uses_double_quotes(self):
        assert '"group"' in self._compile(postgresql.dialect())
