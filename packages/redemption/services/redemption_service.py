"""
Redemption code engine.

Codes are issued as signed tokens backed by a durable row. Redemption checks
the token offline first, then re-validates its embedded parameters against
the locked row and grants one subscription per distinct redeemer, all in one
platform transaction.
"""

from typing import Any, List, Optional, Union

from pydantic import ValidationError

from common.core.config import settings
from common.core.constants import SECONDS_PER_DAY
from common.core.otel_axiom_exporter import trace_span, get_logger
from common.core.results import ErrorCode, Failure, Success, fail
from common.core.security import (
    generate_token_id,
    is_public_id,
    issue_token,
    verify_token,
)
from common.core.timeutils import epoch_to_datetime, resolve_now
from common.db.scoped import transaction
from packages.audit.models.domain.audit_log import AuditAction
from packages.audit.repositories.audit_log_repository import AuditLogRepository
from packages.plans.models.domain.plan import PLAN_ID_PREFIX
from packages.plans.repositories.plan_repository import PlanRepository
from packages.redemption.models.domain.redemption_code import (
    IssuedRedemptionCode,
    RedeemedSubscription,
    RedemptionClaims,
    RedemptionCode,
    RedemptionCodeCreateModel,
    RedemptionOverrides,
    RedemptionRecordCreateModel,
)
from packages.redemption.repositories.redemption_code_repository import (
    RedemptionCodeRepository,
)
from packages.redemption.repositories.redemption_record_repository import (
    RedemptionRecordRepository,
)
from packages.subscriptions.models.domain.deployment import DeploymentCreateModel
from packages.subscriptions.models.domain.subscription import SubscriptionCreateModel
from packages.subscriptions.repositories.deployment_repository import (
    DeploymentRepository,
)
from packages.subscriptions.repositories.subscription_repository import (
    SubscriptionRepository,
)
from packages.users.repositories.user_repository import UserRepository

logger = get_logger(__name__)

DEFAULT_LIST_LIMIT = 50
MAX_LIST_LIMIT = 200


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _is_positive_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0
    )


class RedemptionService:
    """Issues, redeems, lists and revokes redemption codes."""

    def __init__(self, secret: Optional[str] = None):
        self.secret = secret or settings.redemption_code_secret
        # Codes name the same value as issuer and audience
        self.token_issuer = settings.redemption_code_issuer
        self.code_repo = RedemptionCodeRepository()
        self.record_repo = RedemptionRecordRepository()
        self.plan_repo = PlanRepository()
        self.subscription_repo = SubscriptionRepository()
        self.deployment_repo = DeploymentRepository()
        self.user_repo = UserRepository()
        self.audit_repo = AuditLogRepository()

    @trace_span
    async def issue_code(
        self,
        actor_user_id: Optional[int],
        plan_id: str,
        duration_days: Any,
        max_uses: Any,
        expires_in_days: Any,
        overrides: Optional[RedemptionOverrides] = None,
        now: Optional[int] = None,
    ) -> Union[IssuedRedemptionCode, Failure]:
        """
        Create a redemption code row and return its signed token.

        Returns:
            IssuedRedemptionCode, or Failure with plan_not_found,
            duration_days_invalid, max_uses_invalid, expires_in_days_invalid
            or custom_limit_invalid
        """
        now = resolve_now(now)
        if not is_public_id(plan_id, PLAN_ID_PREFIX):
            return fail(ErrorCode.PLAN_NOT_FOUND)
        if not _is_positive_int(duration_days):
            return fail(ErrorCode.DURATION_DAYS_INVALID)
        if not _is_positive_int(max_uses):
            return fail(ErrorCode.MAX_USES_INVALID)
        if not _is_positive_int(expires_in_days):
            return fail(ErrorCode.EXPIRES_IN_DAYS_INVALID)

        if overrides is not None and overrides.is_empty():
            overrides = None
        if overrides is not None:
            for limit in (overrides.limit_5h_units, overrides.limit_7d_units):
                if limit is not None and not _is_positive_number(limit):
                    return fail(ErrorCode.CUSTOM_LIMIT_INVALID)

        plan = await self.plan_repo.get(plan_id)
        if not plan:
            return fail(ErrorCode.PLAN_NOT_FOUND)

        jti = generate_token_id("rcd")
        expires_at = now + expires_in_days * SECONDS_PER_DAY
        claims = RedemptionClaims(
            iss=self.token_issuer,
            aud=self.token_issuer,
            jti=jti,
            iat=now,
            nbf=now,
            exp=expires_at,
            plan_id=plan_id,
            duration_days=duration_days,
            max_uses=max_uses,
            custom=overrides,
        )

        async with transaction():
            await self.code_repo.create(
                RedemptionCodeCreateModel(
                    jti=jti,
                    created_by_user_id=actor_user_id,
                    plan_id=plan_id,
                    duration_days=duration_days,
                    max_uses=max_uses,
                    expires_at=expires_at,
                    custom_plan_name=overrides.plan_name if overrides else None,
                    custom_plan_description=(
                        overrides.plan_description if overrides else None
                    ),
                    custom_limit_5h_units=overrides.limit_5h_units if overrides else None,
                    custom_limit_7d_units=overrides.limit_7d_units if overrides else None,
                )
            )
            await self.audit_repo.record(
                actor_user_id,
                AuditAction.REDEMPTION_CODE_CREATE,
                subject_plan_id=plan_id,
                meta={
                    "jti": jti,
                    "duration_days": duration_days,
                    "max_uses": max_uses,
                    "expires_at": expires_at,
                },
            )

        logger.info(
            f"Issued redemption code {jti} for plan {plan_id}",
            extra={"jti": jti, "plan_id": plan_id, "actor_user_id": actor_user_id},
        )
        return IssuedRedemptionCode(
            jti=jti,
            token=issue_token(claims.to_claims(), self.secret),
            expires_at=expires_at,
        )

    def _claims_failure(self, claims: dict) -> Optional[Failure]:
        jti = claims.get("jti")
        if not isinstance(jti, str) or not jti:
            return fail(ErrorCode.JTI_MISSING)
        if not is_public_id(claims.get("plan_id"), PLAN_ID_PREFIX):
            return fail(ErrorCode.PLAN_ID_INVALID)
        if not _is_positive_int(claims.get("duration_days")):
            return fail(ErrorCode.DURATION_DAYS_INVALID)
        if not _is_positive_int(claims.get("max_uses")):
            return fail(ErrorCode.MAX_USES_INVALID)
        return None

    @trace_span
    async def redeem(
        self, user_id: int, token: str, now: Optional[int] = None
    ) -> Union[RedeemedSubscription, Failure]:
        """
        Redeem a code for the caller.

        A repeated redemption by the same user returns the subscription granted
        the first time with ``already_redeemed=True``.
        """
        now = resolve_now(now)
        verified = verify_token(
            (token or "").strip(),
            self.secret,
            now=now,
            expected_issuer=self.token_issuer,
            expected_audience=self.token_issuer,
        )
        if isinstance(verified, Failure):
            return verified

        invalid = self._claims_failure(verified.claims)
        if invalid:
            return invalid
        try:
            claims = RedemptionClaims.model_validate(verified.claims)
        except ValidationError:
            return fail(ErrorCode.REDEMPTION_CODE_MISMATCH)

        async with transaction():
            code = await self.code_repo.get_for_update(claims.jti)
            if not code:
                return fail(ErrorCode.REDEMPTION_CODE_NOT_FOUND)
            if code.is_revoked():
                return fail(ErrorCode.REDEMPTION_CODE_REVOKED)
            if code.is_expired(now):
                return fail(ErrorCode.REDEMPTION_CODE_EXPIRED)
            if not code.matches_claims(claims):
                logger.warning(
                    f"Redemption code {code.jti} does not match its token",
                    extra={"jti": code.jti, "user_id": user_id},
                )
                return fail(ErrorCode.REDEMPTION_CODE_MISMATCH)

            existing = await self.record_repo.get_for_redeemer(code.jti, user_id)
            if existing:
                return RedeemedSubscription(
                    subscription_id=existing.subscription_id, already_redeemed=True
                )

            if not code.has_uses_left():
                return fail(ErrorCode.REDEMPTION_CODE_NO_USES_LEFT)

            subscription_id = await self._grant(code, user_id, now)

        logger.info(
            f"Redeemed code {claims.jti} as subscription {subscription_id}",
            extra={"jti": claims.jti, "user_id": user_id, "subscription_id": subscription_id},
        )
        return RedeemedSubscription(subscription_id=subscription_id)

    async def _grant(self, code: RedemptionCode, user_id: int, now: int) -> str:
        """Create subscription, deployment and record for a redemption. Runs inside the caller's transaction."""
        await self.user_repo.get_or_create(user_id)
        subscription = await self.subscription_repo.create(
            SubscriptionCreateModel(
                buyer_user_id=user_id,
                plan_id=code.plan_id,
                auto_renew_enabled=False,
                current_period_end=now + code.duration_days * SECONDS_PER_DAY,
                redeemed_code_jti=code.jti,
                custom_plan_name=code.custom_plan_name,
                custom_plan_description=code.custom_plan_description,
                custom_limit_5h_units=code.custom_limit_5h_units,
                custom_limit_7d_units=code.custom_limit_7d_units,
            )
        )
        await self.deployment_repo.create(
            DeploymentCreateModel(subscription_id=subscription.id)
        )
        await self.record_repo.create(
            RedemptionRecordCreateModel(
                jti=code.jti,
                redeemed_by_user_id=user_id,
                subscription_id=subscription.id,
            )
        )
        await self.code_repo.increment_used_count(code.jti)
        await self.audit_repo.record(
            user_id,
            AuditAction.REDEMPTION_CODE_REDEEM,
            subject_subscription_id=subscription.id,
            subject_plan_id=code.plan_id,
            meta={"jti": code.jti},
        )
        return subscription.id

    @trace_span
    async def list_codes(self, limit: Optional[int] = None) -> List[RedemptionCode]:
        """Most recent codes first. The limit is clamped to 1..200."""
        if limit is None:
            limit = DEFAULT_LIST_LIMIT
        limit = max(1, min(MAX_LIST_LIMIT, limit))
        return await self.code_repo.list_recent(limit)

    @trace_span
    async def revoke_code(
        self, actor_user_id: Optional[int], jti: str, now: Optional[int] = None
    ) -> Union[Success, Failure]:
        """Revoke a code. Revoking twice keeps the first revocation time."""
        now = resolve_now(now)
        async with transaction():
            code = await self.code_repo.get_for_update(jti)
            if not code:
                return fail(ErrorCode.REDEMPTION_CODE_NOT_FOUND)
            if not code.is_revoked():
                await self.code_repo.set_revoked(jti, epoch_to_datetime(now))
                await self.audit_repo.record(
                    actor_user_id,
                    AuditAction.REDEMPTION_CODE_REVOKE,
                    subject_plan_id=code.plan_id,
                    meta={"jti": jti},
                )
        return Success()
