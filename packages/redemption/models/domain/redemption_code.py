"""
Domain models for redemption codes.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel


class RedemptionOverrides(BaseModel):
    """Optional per-code replacements for the plan's name, description and limits."""

    plan_name: Optional[str] = None
    plan_description: Optional[str] = None
    limit_5h_units: Optional[float] = None
    limit_7d_units: Optional[float] = None

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


class RedemptionCode(BaseModel):
    jti: str
    created_by_user_id: Optional[int] = None
    plan_id: str
    duration_days: int
    max_uses: int
    used_count: int = 0
    expires_at: int

    custom_plan_name: Optional[str] = None
    custom_plan_description: Optional[str] = None
    custom_limit_5h_units: Optional[float] = None
    custom_limit_7d_units: Optional[float] = None

    revoked_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def is_expired(self, now: int) -> bool:
        return self.expires_at <= now

    def has_uses_left(self) -> bool:
        return self.used_count < self.max_uses

    def matches_claims(self, claims: "RedemptionClaims") -> bool:
        return (
            self.plan_id == claims.plan_id
            and self.duration_days == claims.duration_days
            and self.max_uses == claims.max_uses
        )


class RedemptionCodeCreateModel(BaseModel):
    jti: str
    created_by_user_id: Optional[int] = None
    plan_id: str
    duration_days: int
    max_uses: int
    expires_at: int
    custom_plan_name: Optional[str] = None
    custom_plan_description: Optional[str] = None
    custom_limit_5h_units: Optional[float] = None
    custom_limit_7d_units: Optional[float] = None


class RedemptionClaims(BaseModel):
    """Redemption parameters as embedded in the signed token."""

    iss: str
    aud: Union[str, List[str]]
    jti: str
    iat: Optional[int] = None
    nbf: Optional[int] = None
    exp: Optional[int] = None
    plan_id: str
    duration_days: int
    max_uses: int
    custom: Optional[RedemptionOverrides] = None

    def to_claims(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class RedemptionRecord(BaseModel):
    jti: str
    redeemed_by_user_id: int
    subscription_id: str
    redeemed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RedemptionRecordCreateModel(BaseModel):
    jti: str
    redeemed_by_user_id: int
    subscription_id: str


class IssuedRedemptionCode(BaseModel):
    ok: Literal[True] = True
    jti: str
    token: str
    expires_at: int


class RedeemedSubscription(BaseModel):
    ok: Literal[True] = True
    subscription_id: str
    already_redeemed: bool = False
