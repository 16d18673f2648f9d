from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, field_validator


class AuditAction(str, Enum):
    REDEMPTION_CODE_CREATE = "redemption_code.create"
    REDEMPTION_CODE_REDEEM = "redemption_code.redeem"
    REDEMPTION_CODE_REVOKE = "redemption_code.revoke"


class AuditLog(BaseModel):
    id: int
    actor_user_id: Optional[int] = None
    action: str
    subject_subscription_id: Optional[str] = None
    subject_plan_id: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AuditLogCreateModel(BaseModel):
    actor_user_id: Optional[int] = None
    action: str
    subject_subscription_id: Optional[str] = None
    subject_plan_id: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None

    @field_validator("action", mode="before")
    @classmethod
    def convert_action_to_string(cls, v):
        """Convert AuditAction enum to string value."""
        if isinstance(v, AuditAction):
            return v.value
        return v
