from enum import Enum


class Environment(str, Enum):
    """Environment profiles."""

    LOCAL = "local"
    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class LedgerDialect(str, Enum):
    """SQL dialects the ledger store may run on."""

    MYSQL = "mysql"
    POSTGRESQL = "postgresql"


SECONDS_PER_DAY = 86400
