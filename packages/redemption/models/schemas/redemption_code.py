from typing import Optional
from pydantic import BaseModel

from packages.redemption.models.domain.redemption_code import RedemptionOverrides


class IssueRedemptionCodeRequest(BaseModel):
    plan_id: str
    duration_days: int
    max_uses: int = 1
    expires_in_days: int = 30
    overrides: Optional[RedemptionOverrides] = None


class RedeemRequest(BaseModel):
    token: str
