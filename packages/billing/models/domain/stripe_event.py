from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class StripeEventRecord(BaseModel):
    """A webhook event as received, kept for idempotency and debugging."""

    id: str
    type: str
    payload: str
    received_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StripeEventCreateModel(BaseModel):
    id: str
    type: str
    payload: str
