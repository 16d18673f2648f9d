"""
Domain models for subscriptions.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from common.core.security import generate_public_id
from packages.plans.models.domain.plan import Plan
from packages.subscriptions.models.domain.deployment import Deployment
from packages.subscriptions.models.domain.enums import StripeSubscriptionStatus

SUBSCRIPTION_ID_PREFIX = "sub"


class Subscription(BaseModel):
    """
    One purchase or grant of a plan.

    Paid subscriptions carry Stripe identifiers and a Stripe status. Manual
    grants (redemption codes) have neither and are usable until their period
    ends.
    """

    id: str
    buyer_user_id: int
    plan_id: str

    # External billing
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    stripe_status: Optional[str] = None
    auto_renew_enabled: bool = False
    current_period_end: Optional[int] = None

    redeemed_code_jti: Optional[str] = None

    # Overrides
    custom_plan_name: Optional[str] = None
    custom_plan_description: Optional[str] = None
    custom_limit_5h_units: Optional[float] = None
    custom_limit_7d_units: Optional[float] = None

    created_at: Optional[datetime] = None
    expired_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    def is_billing_managed(self) -> bool:
        return bool(self.stripe_subscription_id)

    def is_deployable(self, now: int) -> bool:
        """
        Eligibility gate for deploy and transfer.

        The subscription must not be expired and its period must end in the
        future. Paid subscriptions additionally need Stripe to report them
        active or trialing.
        """
        if self.expired_at is not None:
            return False
        if self.current_period_end is None or self.current_period_end <= now:
            return False
        if self.is_billing_managed():
            return StripeSubscriptionStatus.grants_access(self.stripe_status or "")
        return True


class SubscriptionCreateModel(BaseModel):
    """Model for creating a new subscription."""

    id: str = Field(default_factory=lambda: generate_public_id(SUBSCRIPTION_ID_PREFIX))
    buyer_user_id: int
    plan_id: str
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    stripe_status: Optional[str] = None
    auto_renew_enabled: bool = False
    current_period_end: Optional[int] = None
    redeemed_code_jti: Optional[str] = None
    custom_plan_name: Optional[str] = None
    custom_plan_description: Optional[str] = None
    custom_limit_5h_units: Optional[float] = None
    custom_limit_7d_units: Optional[float] = None

    @field_validator("stripe_status", mode="before")
    @classmethod
    def convert_status_to_string(cls, v):
        """Convert StripeSubscriptionStatus enum to string value."""
        if isinstance(v, StripeSubscriptionStatus):
            return v.value
        return v


class SubscriptionBillingUpdate(BaseModel):
    """Billing state as reported by Stripe."""

    stripe_status: str
    auto_renew_enabled: bool
    current_period_end: Optional[int] = None

    def is_terminal(self) -> bool:
        return StripeSubscriptionStatus.is_terminal(self.stripe_status)


class SubscriptionDetails(BaseModel):
    """Subscription joined with its plan and deployment."""

    subscription: Subscription
    plan: Plan
    deployment: Optional[Deployment] = None

    @property
    def plan_name(self) -> str:
        return self.subscription.custom_plan_name or self.plan.name

    @property
    def plan_description(self) -> Optional[str]:
        return self.subscription.custom_plan_description or self.plan.description

    @property
    def limit_5h_units(self) -> float:
        if self.subscription.custom_limit_5h_units is not None:
            return self.subscription.custom_limit_5h_units
        return self.plan.limit_5h_units

    @property
    def limit_7d_units(self) -> float:
        if self.subscription.custom_limit_7d_units is not None:
            return self.subscription.custom_limit_7d_units
        return self.plan.limit_7d_units
