"""
Billing routes for authenticated buyers.
"""

from fastapi import APIRouter, Depends

from common.core.results import raise_for_failure
from packages.auth.dependencies import get_current_active_user
from packages.auth.models.domain.authenticated_user import AuthenticatedUser
from packages.billing.models.domain.reconciliation import CheckoutStarted
from packages.billing.models.schemas.billing import CheckoutRequest
from packages.billing.services.checkout_service import CheckoutService

router = APIRouter()


@router.post("/checkout", response_model=CheckoutStarted)
async def start_checkout(
    request: CheckoutRequest,
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    """
    Start a paid subscription for a plan.

    Returns the client secret the frontend uses to confirm the first payment.
    An unpaid checkout for the same plan is reused rather than duplicated.
    """
    result = await CheckoutService().start_checkout(
        current_user.user_id, current_user.email, request.plan_id
    )
    return raise_for_failure(result)
