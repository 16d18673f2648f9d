from pydantic import BaseModel


class SweepSummary(BaseModel):
    """Counters for one expiry sweep pass."""

    found: int = 0
    processed: int = 0
    failed: int = 0
    retracted: int = 0


class CheckoutStarted(BaseModel):
    """Client-side payment handle for a new or reused Stripe subscription."""

    ok: bool = True
    subscription_id: str
    stripe_subscription_id: str
    client_secret: str
