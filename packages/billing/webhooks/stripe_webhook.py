"""
Stripe webhook handler.

Every verified event is stored once by its Stripe id. Recording the event and
applying it share one platform transaction, so a failed handler leaves no
record behind and Stripe's redelivery is processed in full.
"""

import stripe
from fastapi import Request, HTTPException, status

from common.core.otel_axiom_exporter import get_logger
from common.db.scoped import transaction
from packages.billing.models.domain.stripe_event import StripeEventCreateModel
from packages.billing.models.domain.stripe_webhooks import (
    StripeInvoiceData,
    StripeSubscriptionData,
    StripeWebhookPayload,
    StripeWebhookType,
)
from packages.billing.providers.payment.factory import get_payment_provider
from packages.billing.repositories.stripe_event_repository import (
    StripeEventRepository,
)
from packages.billing.services.reconciliation_service import ReconciliationService

logger = get_logger(__name__)


async def handle_stripe_webhook(request: Request) -> dict[str, str]:
    """
    Handle incoming webhook from Stripe.

    Validates the webhook signature, stores the event and routes it to the
    appropriate handler.
    """
    payload_bytes = await request.body()
    sig_header = request.headers.get("stripe-signature")

    if not sig_header:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing stripe-signature header",
        )

    payment_provider = get_payment_provider()
    try:
        event = payment_provider.construct_event(payload_bytes, sig_header)
    except stripe.SignatureVerificationError as e:
        logger.error(f"Stripe webhook signature verification failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid signature"
        )
    except ValueError as e:
        logger.error(f"Invalid Stripe webhook payload: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid webhook payload"
        )

    logger.info(
        f"Received Stripe webhook: {event.type}",
        extra={
            "event_id": event.id,
            "event_type": event.type,
            "livemode": event.livemode,
        },
    )

    reconciliation = ReconciliationService(payment_provider)
    try:
        async with transaction():
            stored = await StripeEventRepository().record_once(
                StripeEventCreateModel(
                    id=event.id,
                    type=event.type,
                    payload=payload_bytes.decode("utf-8", errors="replace"),
                )
            )
            if not stored:
                logger.info(
                    f"Duplicate Stripe webhook {event.id}",
                    extra={"event_id": event.id},
                )
                return {"status": "duplicate"}

            await _dispatch(event, reconciliation)
    except Exception as e:
        logger.error(
            f"Failed to process Stripe webhook: {str(e)}",
            extra={"event_id": event.id, "event_type": event.type, "error": str(e)},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook processing failed",
        )

    return {"status": "success"}


async def _dispatch(
    event: StripeWebhookPayload, reconciliation: ReconciliationService
) -> None:
    if event.type in StripeWebhookType.subscription_events():
        await _handle_subscription_changed(event.data.object, reconciliation)
    elif event.type in StripeWebhookType.invoice_events():
        await _handle_invoice_event(event.data.object, reconciliation)
    else:
        logger.info(f"Unhandled Stripe webhook type: {event.type}")


async def _handle_subscription_changed(
    data: dict, reconciliation: ReconciliationService
) -> None:
    """customer.subscription.created/updated/deleted carry the full subscription."""
    await reconciliation.sync_subscription(StripeSubscriptionData.model_validate(data))


async def _handle_invoice_event(
    data: dict, reconciliation: ReconciliationService
) -> None:
    """
    Invoice events only reference their subscription, so its current state is
    fetched from Stripe before syncing.
    """
    invoice = StripeInvoiceData.model_validate(data)
    stripe_subscription_id = invoice.subscription_id()
    if not stripe_subscription_id:
        logger.info(
            f"Invoice {invoice.id} has no subscription, skipping",
            extra={"invoice_id": invoice.id},
        )
        return
    await reconciliation.sync_subscription_by_id(stripe_subscription_id)
