"""
Discriminated result values shared by every domain operation.

Operations never raise for expected outcomes. They return either a success
model (``ok=True``) or a ``Failure`` carrying a stable string code that
callers can pattern-match, localize or map onto an HTTP status.
"""

from enum import Enum
from typing import Literal, Union

from fastapi import HTTPException, status
from pydantic import BaseModel


class ErrorCategory(str, Enum):
    """Broad classes of failure."""

    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    OUT_OF_SYNC = "out_of_sync"
    UPSTREAM = "upstream"


class ErrorCode(str, Enum):
    """Stable failure codes."""

    # Validation
    JTI_MISSING = "jti_missing"
    PLAN_ID_INVALID = "plan_id_invalid"
    DURATION_DAYS_INVALID = "duration_days_invalid"
    MAX_USES_INVALID = "max_uses_invalid"
    EXPIRES_IN_DAYS_INVALID = "expires_in_days_invalid"
    CUSTOM_LIMIT_INVALID = "custom_limit_invalid"
    LEDGER_IDENTIFIER_REQUIRED = "ledger_identifier_required"
    MISSING_CURRENT_PERIOD_END = "missing_current_period_end"

    # Not found
    PLAN_NOT_FOUND = "plan_not_found"
    SUBSCRIPTION_NOT_FOUND = "subscription_not_found"
    REDEMPTION_CODE_NOT_FOUND = "redemption_code_not_found"
    LEDGER_USER_NOT_FOUND = "ledger_user_not_found"
    FROM_USER_NOT_FOUND = "from_user_not_found"
    TO_USER_NOT_FOUND = "to_user_not_found"
    SUBSCRIPTION_NOT_FOUND_ON_SOURCE = "subscription_not_found_on_source"

    # State conflicts
    REDEMPTION_CODE_REVOKED = "redemption_code_revoked"
    REDEMPTION_CODE_EXPIRED = "redemption_code_expired"
    REDEMPTION_CODE_MISMATCH = "redemption_code_mismatch"
    REDEMPTION_CODE_NO_USES_LEFT = "redemption_code_no_uses_left"
    NOT_DEPLOYABLE_UNTIL_SUBSCRIPTION_ACTIVE = (
        "not_deployable_until_subscription_active"
    )
    NOT_TRANSFERABLE_UNTIL_SUBSCRIPTION_ACTIVE = (
        "not_transferable_until_subscription_active"
    )
    USE_TRANSFER_FOR_DIFFERENT_TARGET = "use_transfer_for_different_target"
    ALREADY_DEPLOYED = "already_deployed"
    DEPLOYMENT_IN_PROGRESS = "deployment_in_progress"
    ALREADY_PRESENT_NOT_DEACTIVATED = "already_present_not_deactivated"
    SUBSCRIPTION_ALREADY_EXISTS_ON_TARGET = "subscription_already_exists_on_target"
    NOT_DEPLOYED = "not_deployed"
    SUBSCRIPTION_EXPIRED = "subscription_expired"
    LEDGER_ENTRY_INVALID = "ledger_entry_invalid"

    # Cross-store partial failure
    DEPLOYMENT_RECORD_OUT_OF_SYNC = "deployment_record_out_of_sync"

    # Payment provider unavailable or misbehaving
    PAYMENT_PROVIDER_ERROR = "payment_provider_error"

    @property
    def category(self) -> ErrorCategory:
        if self in _NOT_FOUND_CODES:
            return ErrorCategory.NOT_FOUND
        if self in _VALIDATION_CODES:
            return ErrorCategory.VALIDATION
        if self == ErrorCode.DEPLOYMENT_RECORD_OUT_OF_SYNC:
            return ErrorCategory.OUT_OF_SYNC
        if self == ErrorCode.PAYMENT_PROVIDER_ERROR:
            return ErrorCategory.UPSTREAM
        return ErrorCategory.CONFLICT


_VALIDATION_CODES = frozenset(
    {
        ErrorCode.JTI_MISSING,
        ErrorCode.PLAN_ID_INVALID,
        ErrorCode.DURATION_DAYS_INVALID,
        ErrorCode.MAX_USES_INVALID,
        ErrorCode.EXPIRES_IN_DAYS_INVALID,
        ErrorCode.CUSTOM_LIMIT_INVALID,
        ErrorCode.LEDGER_IDENTIFIER_REQUIRED,
        ErrorCode.MISSING_CURRENT_PERIOD_END,
    }
)

_NOT_FOUND_CODES = frozenset(
    {
        ErrorCode.PLAN_NOT_FOUND,
        ErrorCode.SUBSCRIPTION_NOT_FOUND,
        ErrorCode.REDEMPTION_CODE_NOT_FOUND,
        ErrorCode.LEDGER_USER_NOT_FOUND,
        ErrorCode.FROM_USER_NOT_FOUND,
        ErrorCode.TO_USER_NOT_FOUND,
        ErrorCode.SUBSCRIPTION_NOT_FOUND_ON_SOURCE,
    }
)

_CATEGORY_STATUS = {
    ErrorCategory.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorCategory.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCategory.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCategory.OUT_OF_SYNC: status.HTTP_502_BAD_GATEWAY,
    ErrorCategory.UPSTREAM: status.HTTP_502_BAD_GATEWAY,
}


class Failure(BaseModel):
    """Failed operation with a stable code."""

    ok: Literal[False] = False
    error: str


class Success(BaseModel):
    """Successful operation without a payload."""

    ok: Literal[True] = True


def fail(code: Union[ErrorCode, str]) -> Failure:
    return Failure(error=code.value if isinstance(code, Enum) else code)


def error_status(code: str) -> int:
    """HTTP status for a failure code. Token errors are validation failures."""
    try:
        return _CATEGORY_STATUS[ErrorCode(code).category]
    except ValueError:
        return status.HTTP_400_BAD_REQUEST


def raise_for_failure(result):
    """Route helper: turn a Failure into an HTTPException, pass anything else through."""
    if isinstance(result, Failure):
        raise HTTPException(status_code=error_status(result.error), detail=result.error)
    return result
