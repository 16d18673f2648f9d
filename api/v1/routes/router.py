from fastapi import APIRouter, Depends

from api.v1.routes import (
    health,
)
from packages.auth.dependencies import get_current_active_user
from packages.billing.routes import billing, webhooks
from packages.plans.routes import plans
from packages.redemption.routes import redemption_codes
from packages.subscriptions.routes import subscriptions

api_router = APIRouter()

# Health check (no auth required)
api_router.include_router(health.router, prefix="/health", tags=["health"])

# Webhooks (no auth - signature verified internally)
api_router.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])

# Plans (no auth - public catalog)
api_router.include_router(plans.router, prefix="/plans", tags=["plans"])

# Billing routes (require auth)
api_router.include_router(
    billing.router,
    prefix="/billing",
    tags=["billing"],
    dependencies=[Depends(get_current_active_user)],
)

api_router.include_router(
    subscriptions.router,
    prefix="/subscriptions",
    tags=["subscriptions"],
    dependencies=[Depends(get_current_active_user)],
)

# Redemption codes - admin endpoints check the role per route
api_router.include_router(
    redemption_codes.router,
    prefix="/redemption-codes",
    tags=["redemption-codes"],
    dependencies=[Depends(get_current_active_user)],
)
