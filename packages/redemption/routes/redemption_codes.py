"""
Redemption code routes: admin issuance and revocation, user redemption.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from common.core.results import Success, raise_for_failure
from packages.auth.dependencies import get_current_active_user, get_current_admin_user
from packages.auth.models.domain.authenticated_user import AuthenticatedUser
from packages.redemption.models.domain.redemption_code import (
    IssuedRedemptionCode,
    RedeemedSubscription,
    RedemptionCode,
)
from packages.redemption.models.schemas.redemption_code import (
    IssueRedemptionCodeRequest,
    RedeemRequest,
)
from packages.redemption.services.redemption_service import RedemptionService

router = APIRouter()


@router.post("", response_model=IssuedRedemptionCode)
async def issue_redemption_code(
    request: IssueRedemptionCodeRequest,
    current_user: AuthenticatedUser = Depends(get_current_admin_user),
):
    """Issue a new redemption code."""
    result = await RedemptionService().issue_code(
        current_user.user_id,
        request.plan_id,
        request.duration_days,
        request.max_uses,
        request.expires_in_days,
        overrides=request.overrides,
    )
    return raise_for_failure(result)


@router.get("", response_model=List[RedemptionCode])
async def list_redemption_codes(
    limit: Optional[int] = Query(default=None),
    current_user: AuthenticatedUser = Depends(get_current_admin_user),
):
    return await RedemptionService().list_codes(limit)


@router.post("/redeem", response_model=RedeemedSubscription)
async def redeem_code(
    request: RedeemRequest,
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    """Redeem a code for the caller's account."""
    result = await RedemptionService().redeem(current_user.user_id, request.token)
    return raise_for_failure(result)


@router.post("/{jti}/revoke", response_model=Success)
async def revoke_redemption_code(
    jti: str,
    current_user: AuthenticatedUser = Depends(get_current_admin_user),
):
    result = await RedemptionService().revoke_code(current_user.user_id, jti)
    return raise_for_failure(result)
