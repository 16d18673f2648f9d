from sqlalchemy import Column, String, Text

from common.db.base import LedgerBase, BigIntegerType


class LedgerUserEntity(LedgerBase):
    """
    User row of the external ledger store.

    Only the columns this service reads or writes are mapped. ``group`` is a
    reserved word on both supported dialects and is quoted by SQLAlchemy.
    """

    __tablename__ = "users"

    id = Column(BigIntegerType, primary_key=True)
    username = Column(String(255), nullable=False, index=True)
    group = Column("group", String(64), nullable=False, default="default")
    subscription_data = Column(Text, nullable=True)  # JSON array of ledger entries
