"""
Inbound Stripe events. Authenticated by the webhook signature, not by a
bearer token.
"""

from fastapi import APIRouter, Request

from packages.billing.webhooks.stripe_webhook import handle_stripe_webhook

router = APIRouter()


@router.post("/stripe")
async def stripe_webhook(request: Request) -> dict[str, str]:
    """Answers 200 for processed and duplicate events, 400 for unverifiable ones."""
    return await handle_stripe_webhook(request)
