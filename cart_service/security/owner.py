"""
Cart Owner Resolution

Works out which cart a request addresses. Guests send their session token
in ``X-Session-ID``; signed-in users send ``Authorization: Bearer <jwt>``.
A request must carry exactly one of the two.
"""

import os
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Header, HTTPException

from cartlines import CartOwner

logger = logging.getLogger(__name__)


def _jwt_secret() -> str:
    return os.getenv("CART_JWT_SECRET", "dev-cart-secret-change-me-in-production")


def _jwt_algorithm() -> str:
    return os.getenv("CART_JWT_ALGORITHM", "HS256")


def api_error(status_code: int, code: str, message: str) -> HTTPException:
    """Build an HTTPException with the structured error body clients parse"""
    return HTTPException(status_code=status_code, detail={"code": code, "message": message})


def issue_account_token(user_id: str, expires_in: Optional[timedelta] = None) -> str:
    """
    Issue an account credential.

    Credential checks belong to the authentication service; this exists for
    development tooling and tests that need a valid bearer token.
    """
    if expires_in is None:
        expires_in = timedelta(minutes=int(os.getenv("CART_TOKEN_TTL_MINUTES", "60")))

    now = datetime.now(timezone.utc)
    payload = {"sub": user_id, "iat": now, "exp": now + expires_in}
    return jwt.encode(payload, _jwt_secret(), algorithm=_jwt_algorithm())


def decode_account_token(token: str) -> str:
    """Verify a bearer token and return the user id it names"""
    try:
        claims = jwt.decode(token, _jwt_secret(), algorithms=[_jwt_algorithm()])
    except jwt.ExpiredSignatureError:
        raise api_error(401, "TOKEN_EXPIRED", "Token has expired")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise api_error(401, "INVALID_TOKEN", "Invalid token")

    user_id = claims.get("sub")
    if not user_id:
        raise api_error(401, "INVALID_TOKEN", "Token does not name a user")
    return str(user_id)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise api_error(401, "INVALID_TOKEN", "Authorization must be a bearer token")
    return token.strip()


class OwnerDependency:
    """
    FastAPI dependency resolving the cart owner of a request.

    Use ``require_account`` for routes only a signed-in user may call.
    """

    def __init__(self, require_account: bool = False):
        self.require_account = require_account

    async def __call__(
        self,
        x_session_id: Optional[str] = Header(None),
        authorization: Optional[str] = Header(None),
    ) -> CartOwner:
        token = _bearer_token(authorization)
        session_id = x_session_id.strip() if x_session_id else None

        if token and session_id:
            raise api_error(
                400,
                "AMBIGUOUS_OWNER",
                "Send either a session ID or a bearer token, not both",
            )

        if token:
            user_id = decode_account_token(token)
            return CartOwner.account(user_id, access_token=token)

        if self.require_account:
            raise api_error(401, "NO_TOKEN", "Access token is required")

        if session_id:
            return CartOwner.guest(session_id)

        raise api_error(400, "MISSING_IDENTIFIER", "User ID or session ID is required")


# Dependency instances
resolve_owner = OwnerDependency()
require_account = OwnerDependency(require_account=True)
