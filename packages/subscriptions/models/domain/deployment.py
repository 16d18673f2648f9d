"""
Domain models for deployments.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, field_validator

from packages.subscriptions.models.domain.enums import DeploymentStatus


class Deployment(BaseModel):
    """Where (and whether) a subscription is placed in the ledger store."""

    subscription_id: str
    status: DeploymentStatus
    ledger_user_id: Optional[int] = None
    ledger_username: Optional[str] = None
    deployed_at: Optional[datetime] = None
    deactivated_at: Optional[datetime] = None
    transferred_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    def has_owner(self) -> bool:
        return self.ledger_user_id is not None

    def is_placed(self) -> bool:
        """An entry was written to the owner and recorded here."""
        return self.has_owner() and self.status in (
            DeploymentStatus.DEPLOYED,
            DeploymentStatus.DEACTIVATED,
        )


class DeploymentCreateModel(BaseModel):
    """Model for creating the deployment row of a new subscription."""

    subscription_id: str
    status: str = DeploymentStatus.ORDERED.value

    @field_validator("status", mode="before")
    @classmethod
    def convert_status_to_string(cls, v):
        """Convert DeploymentStatus enum to string value."""
        if isinstance(v, DeploymentStatus):
            return v.value
        return v
