"""Caller Identity — verifies bearer JWTs issued by the account service.

Invariants:
    - Tokens are verified (signature + expiry), never issued, here
    - The numeric user id comes from the `sub` claim (`id` accepted for older tokens)
    - Any failure surfaces as AuthenticationError (401), never a 500

Design Decisions:
    - python-jose for JWT decoding; HTTPBearer so OpenAPI shows the lock icon
    - auto_error=False: a missing header goes through the same error envelope
"""

import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from togeeat.config import Settings, get_settings
from togeeat.core.domain_types import UserId
from togeeat.core.errors import AuthenticationError

logger = logging.getLogger(__name__)
bearer_scheme = HTTPBearer(auto_error=False)


def decode_user_id(token: str, secret: str, algorithm: str) -> UserId:
    """Decode a JWT and return the caller's user id."""
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except JWTError as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise AuthenticationError() from e
    raw = payload.get("sub", payload.get("id"))
    try:
        user_id = int(raw)
    except (TypeError, ValueError):
        raise AuthenticationError() from None
    if user_id <= 0:
        raise AuthenticationError()
    return UserId(user_id)


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> UserId:
    """FastAPI dependency — verified caller id or 401."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Missing bearer token")
    return decode_user_id(
        credentials.credentials, settings.jwt_secret, settings.jwt_algorithm,
    )
