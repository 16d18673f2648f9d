from datetime import datetime
from typing import Optional
from pydantic import BaseModel

PLAN_ID_PREFIX = "pln"


class Plan(BaseModel):
    """Catalog plan with its two quota windows."""

    id: str
    name: str
    description: Optional[str] = None
    limit_5h_units: float
    limit_7d_units: float
    stripe_price_id: Optional[str] = None
    is_active: bool = True
    is_hidden: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    def is_purchasable(self) -> bool:
        return self.is_active and bool(self.stripe_price_id)


class PlanResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    limit_5h_units: float
    limit_7d_units: float
    purchasable: bool
