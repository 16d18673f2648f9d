from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType


class UserEntity(Base):
    """Platform user. The id is the stable numeric identity issued by the auth layer."""

    __tablename__ = "users"

    id = Column(BigIntegerType, primary_key=True, autoincrement=False)
    email = Column(String, nullable=True, index=True)
    stripe_customer_id = Column(String, nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
