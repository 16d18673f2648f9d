"""
Plans API routes.

Public endpoint for the plan catalog.
"""

from typing import List

from fastapi import APIRouter

from packages.plans.models.domain.plan import PlanResponse
from packages.plans.repositories.plan_repository import PlanRepository

router = APIRouter()


@router.get("", response_model=List[PlanResponse])
async def get_plans():
    """
    Get all visible plans.

    This endpoint is public (no auth required) for pricing pages.
    """
    plans = await PlanRepository().list_visible()
    return [
        PlanResponse(
            id=plan.id,
            name=plan.name,
            description=plan.description,
            limit_5h_units=plan.limit_5h_units,
            limit_7d_units=plan.limit_7d_units,
            purchasable=plan.is_purchasable(),
        )
        for plan in plans
    ]
