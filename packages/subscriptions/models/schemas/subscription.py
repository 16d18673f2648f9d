from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel

from packages.ledger.models.domain.ledger_entry import QuotaLedgerEntry
from packages.subscriptions.models.domain.enums import DeploymentStatus


class LedgerTargetRequest(BaseModel):
    """External user to deploy or transfer to (numeric id or username)."""

    identifier: str


class DeploymentResult(BaseModel):
    """Outcome of a successful deploy, transfer or deactivate."""

    ok: Literal[True] = True
    subscription_id: str
    status: DeploymentStatus
    ledger_user_id: int
    ledger_username: str
    entry: QuotaLedgerEntry


class SubscriptionSummary(BaseModel):
    """Subscription as shown to its buyer."""

    id: str
    plan_id: str
    plan_name: str
    plan_description: Optional[str] = None
    limit_5h_units: float
    limit_7d_units: float
    stripe_status: Optional[str] = None
    auto_renew_enabled: bool
    current_period_end: Optional[int] = None
    expired_at: Optional[datetime] = None
    redeemed_code_jti: Optional[str] = None
    deployment_status: Optional[DeploymentStatus] = None
    ledger_user_id: Optional[int] = None
    ledger_username: Optional[str] = None
    ledger_entry: Optional[QuotaLedgerEntry] = None
    can_deploy: bool
