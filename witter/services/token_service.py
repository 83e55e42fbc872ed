"""
Witter API — Session Token Service
===================================

What:  Issues and inspects the JSON web tokens that identify a signed-in user.
Why:   Every mutating route is gated on a token carried in the request body.
How:   PyJWT, HS256, signed with settings.secret_key.

Token lifecycle:
    Issued at sign-up, log-in and after a profile edit (so the claims carry
    the fresh profile). Tokens never expire; there is no exp claim.

Two distinct reads:
    decode_claims()        → payload WITHOUT signature verification. Used to
                             find out who the token claims to be.
    has_valid_signature()  → True only for tokens signed with our own secret.
    The auth layer always runs both: a foreign-signed token may decode
    cleanly but must still be rejected.
"""

import logging
import time
from typing import Any, Dict, Optional

import jwt
from pydantic import ValidationError as PydanticValidationError

from witter.config import settings
from witter.models.user import User
from witter.schemas.token import TokenClaims

logger = logging.getLogger(__name__)

# Profile columns copied into the token. The password hash is never included.
CLAIM_FIELDS = (
    "handle",
    "username",
    "email",
    "user_description",
    "profile_image",
    "banner_image",
)


def user_claims(user: User) -> Dict[str, Any]:
    """Public profile claims for a user row."""
    return {field: getattr(user, field) for field in CLAIM_FIELDS}


def create_token(claims: Dict[str, Any]) -> str:
    """Sign `claims` (plus an integer `iat`) with the service secret."""
    payload = {key: value for key, value in claims.items() if key != "password"}
    payload["iat"] = int(time.time())
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_claims(token: Any) -> Optional[TokenClaims]:
    """
    Decode a token's payload without checking who signed it.

    Returns None for anything that is not a string, does not decode, or does
    not carry a string `handle` claim.
    """
    if not isinstance(token, str) or not token:
        return None
    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None
    try:
        return TokenClaims.model_validate(payload)
    except PydanticValidationError:
        logger.debug("Token payload failed claims validation")
        return None


# Only the signature is checked; registered time and audience claims are not enforced
SIGNATURE_ONLY = {
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_aud": False,
}


def has_valid_signature(token: Any) -> bool:
    """True only if `token` verifies against this service's secret."""
    if not isinstance(token, str) or not token:
        return False
    try:
        jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
            options=SIGNATURE_ONLY,
        )
    except jwt.PyJWTError:
        return False
    return True
