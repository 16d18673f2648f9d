"""
Subscription routes for the buyer: listing and the deploy/deactivate/transfer
transitions.
"""

from typing import List

from fastapi import APIRouter, Depends

from common.core.results import raise_for_failure
from packages.auth.dependencies import get_current_active_user
from packages.auth.models.domain.authenticated_user import AuthenticatedUser
from packages.subscriptions.models.schemas.subscription import (
    DeploymentResult,
    LedgerTargetRequest,
    SubscriptionSummary,
)
from packages.subscriptions.services.deployment_service import DeploymentService
from packages.subscriptions.services.subscription_service import SubscriptionService

router = APIRouter()


@router.get("", response_model=List[SubscriptionSummary])
async def list_subscriptions(
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    """List the caller's subscriptions with their deployment state."""
    return await SubscriptionService().list_for_user(current_user.user_id)


@router.post("/{subscription_id}/deploy", response_model=DeploymentResult)
async def deploy_subscription(
    subscription_id: str,
    request: LedgerTargetRequest,
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    """Place (or re-place) the subscription's quota on an external user."""
    result = await DeploymentService().deploy(
        current_user.user_id, subscription_id, request.identifier
    )
    return raise_for_failure(result)


@router.post("/{subscription_id}/deactivate", response_model=DeploymentResult)
async def deactivate_subscription(
    subscription_id: str,
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    """Deactivate the subscription's ledger entry, keeping its quota."""
    result = await DeploymentService().deactivate(current_user.user_id, subscription_id)
    return raise_for_failure(result)


@router.post("/{subscription_id}/transfer", response_model=DeploymentResult)
async def transfer_subscription(
    subscription_id: str,
    request: LedgerTargetRequest,
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    """Move the subscription's ledger entry to another external user."""
    result = await DeploymentService().transfer(
        current_user.user_id, subscription_id, request.identifier
    )
    return raise_for_failure(result)
