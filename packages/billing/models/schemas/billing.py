"""
API schemas for billing operations.
"""

from pydantic import BaseModel, Field


class CheckoutRequest(BaseModel):
    """Request to start paying for a plan."""

    plan_id: str = Field(..., description="Plan to subscribe to")
