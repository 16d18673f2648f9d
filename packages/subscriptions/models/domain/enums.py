"""
Subscription enums - strongly typed enumerations for subscription and deployment states.
"""

from enum import Enum


class DeploymentStatus(str, Enum):
    """
    Placement of a subscription in the external ledger.

    Flow: ordered -> deploying -> deployed <-> deactivated
    expired/disabled are reachable from any non-terminal state.
    """

    ORDERED = "ordered"  # Created, never placed
    DEPLOYING = "deploying"  # First placement in progress (ledger first, then here)
    DEPLOYED = "deployed"
    DEACTIVATED = "deactivated"
    DISABLED = "disabled"
    EXPIRED = "expired"

    def is_terminal(self) -> bool:
        return self in (DeploymentStatus.EXPIRED, DeploymentStatus.DISABLED)


class StripeSubscriptionStatus(str, Enum):
    """Stripe subscription status values."""

    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"
    PAUSED = "paused"

    @classmethod
    def grants_access(cls, status: str) -> bool:
        """Whether a paid subscription in this status may be deployed."""
        return status in (cls.ACTIVE.value, cls.TRIALING.value)

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        """Whether this status ends the subscription for good."""
        return status in (cls.CANCELED.value, cls.INCOMPLETE_EXPIRED.value)
