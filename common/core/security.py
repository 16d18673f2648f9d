"""
Capability token codec and identifier generation.

Tokens are compact HS256 JWTs. Verification never raises: every way a token
can be rejected maps onto one ``TokenError`` code, and the clock is an input so
callers (and tests) decide what "now" means.
"""

import base64
import secrets
import string
from enum import Enum
from typing import Any, Dict, Literal, Optional, Union

import jwt
from jwt.exceptions import InvalidSignatureError, InvalidTokenError
from pydantic import BaseModel

from common.core.results import Failure

TOKEN_ALGORITHM = "HS256"

_ID_ALPHABET = string.ascii_letters + string.digits


class TokenError(str, Enum):
    """Reasons a token is rejected."""

    FORMAT_INVALID = "jwt_format_invalid"
    DECODE_FAILED = "jwt_decode_failed"
    ALG_INVALID = "jwt_alg_invalid"
    SIGNATURE_INVALID = "jwt_signature_invalid"
    EXPIRED = "jwt_expired"
    NOT_ACTIVE = "jwt_not_active"
    ISSUER_INVALID = "jwt_issuer_invalid"
    AUDIENCE_INVALID = "jwt_audience_invalid"


class VerifiedToken(BaseModel):
    """A token whose signature and timing claims checked out."""

    ok: Literal[True] = True
    header: Dict[str, Any]
    claims: Dict[str, Any]


TokenResult = Union[VerifiedToken, Failure]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def issue_token(claims: Dict[str, Any], secret: str) -> str:
    """Sign claims into a three-segment HS256 token."""
    return jwt.encode(claims, secret, algorithm=TOKEN_ALGORITHM)


def verify_token(
    token: str,
    secret: str,
    now: int,
    expected_issuer: Optional[str] = None,
    expected_audience: Optional[str] = None,
) -> TokenResult:
    """
    Verify a token and return its claims.

    Args:
        token: Compact token string
        secret: Shared HMAC secret
        now: Current time in epoch seconds
        expected_issuer: Required ``iss`` value, if any
        expected_audience: Required ``aud`` value, if any

    Returns:
        VerifiedToken on success, Failure with a TokenError code otherwise
    """
    if not isinstance(token, str):
        return Failure(error=TokenError.FORMAT_INVALID.value)
    parts = token.strip().split(".")
    if len(parts) != 3 or not all(parts):
        return Failure(error=TokenError.FORMAT_INVALID.value)
    token = ".".join(parts)

    try:
        header = jwt.get_unverified_header(token)
        jwt.decode(token, options={"verify_signature": False})
    except InvalidTokenError:
        return Failure(error=TokenError.DECODE_FAILED.value)

    if header.get("alg") != TOKEN_ALGORITHM:
        return Failure(error=TokenError.ALG_INVALID.value)

    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[TOKEN_ALGORITHM],
            options={
                "verify_exp": False,
                "verify_nbf": False,
                "verify_iat": False,
                "verify_aud": False,
                "verify_iss": False,
                "verify_sub": False,
                "verify_jti": False,
            },
        )
    except InvalidSignatureError:
        return Failure(error=TokenError.SIGNATURE_INVALID.value)
    except InvalidTokenError:
        return Failure(error=TokenError.DECODE_FAILED.value)

    exp = claims.get("exp")
    if _is_number(exp) and now >= exp:
        return Failure(error=TokenError.EXPIRED.value)

    nbf = claims.get("nbf")
    if _is_number(nbf) and now < nbf:
        return Failure(error=TokenError.NOT_ACTIVE.value)

    if expected_issuer is not None and claims.get("iss") != expected_issuer:
        return Failure(error=TokenError.ISSUER_INVALID.value)

    if expected_audience is not None:
        aud = claims.get("aud")
        matches = (
            aud == expected_audience
            if isinstance(aud, str)
            else isinstance(aud, list) and expected_audience in aud
        )
        if not matches:
            return Failure(error=TokenError.AUDIENCE_INVALID.value)

    return VerifiedToken(header=header, claims=claims)


def generate_public_id(prefix: str, length: int = 16) -> str:
    """Generate a prefixed base62 identifier, e.g. ``sub_4fTq...``."""
    random_part = "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))
    return f"{prefix}_{random_part}"


def is_public_id(value: Any, prefix: str, length: int = 16) -> bool:
    if not isinstance(value, str) or not value.startswith(f"{prefix}_"):
        return False
    body = value[len(prefix) + 1 :]
    return len(body) == length and all(c in _ID_ALPHABET for c in body)


def generate_token_id(prefix: str = "rcd", num_bytes: int = 24) -> str:
    """Unpredictable token id: prefix plus unpadded base64url random bytes."""
    raw = base64.urlsafe_b64encode(secrets.token_bytes(num_bytes)).rstrip(b"=")
    return f"{prefix}_{raw.decode('ascii')}"
