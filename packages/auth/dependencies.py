from typing import Annotated, Optional
from fastapi import Depends, HTTPException, status, Header

from common.core.config import settings
from common.core.otel_axiom_exporter import trace_span, get_logger
from common.core.results import Failure
from common.core.security import verify_token
from common.core.timeutils import epoch_now
from packages.auth.models.domain.authenticated_user import AuthenticatedUser

logger = get_logger(__name__)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


@trace_span
async def get_current_user(
    authorization: Annotated[Optional[str], Header()] = None,
) -> AuthenticatedUser:
    """Get current authenticated user from the session layer's bearer token."""
    if not authorization or not authorization.startswith("Bearer "):
        raise _unauthorized("Authorization header missing or invalid")

    token = authorization.split(" ", 1)[1]
    verified = verify_token(
        token,
        settings.session_token_secret,
        now=epoch_now(),
        expected_issuer=settings.session_token_issuer,
        expected_audience=settings.session_token_audience,
    )
    if isinstance(verified, Failure):
        logger.info(f"Rejected bearer token: {verified.error}")
        raise _unauthorized(verified.error)

    subject = str(verified.claims.get("sub", ""))
    if not subject.isdigit():
        raise _unauthorized("Token subject is not a user id")

    return AuthenticatedUser(
        user_id=int(subject),
        email=verified.claims.get("email"),
        is_admin=verified.claims.get("is_admin") is True,
    )


@trace_span
async def get_current_active_user(
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    """Get current active user."""
    return current_user


@trace_span
async def get_current_admin_user(
    current_user: AuthenticatedUser = Depends(get_current_active_user),
) -> AuthenticatedUser:
    """Get current user, requiring the admin role."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user
