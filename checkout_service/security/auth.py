"""
Bearer Authentication

Resolves the storefront user from the access token issued by the hosted
backend's auth service. Tokens are HS256 JWTs whose `sub` claim is the user id.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Header, HTTPException

from ..core.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class AuthenticatedUser:
    """User resolved from a verified access token"""
    user_id: str
    email: Optional[str] = None
    role: Optional[str] = None


def _unauthenticated(message: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail={"code": "unauthenticated", "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


class BearerAuth:
    """
    FastAPI dependency that requires a valid bearer token.

    Usage:
        @router.post("")
        async def checkout(user: AuthenticatedUser = Depends(require_user)):
            ...
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    def decode(self, token: str) -> AuthenticatedUser:
        """Verify a token and build the user it names"""
        secret = self.settings.auth_jwt_secret
        if not secret:
            logger.error("Bearer token received but no auth secret is configured")
            raise _unauthenticated("Authentication is not configured")

        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=["HS256"],
                audience=self.settings.auth_jwt_audience,
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise _unauthenticated("Token has expired")
        except jwt.InvalidTokenError as e:
            logger.warning(f"Rejected bearer token: {e}")
            raise _unauthenticated("Invalid token")

        return AuthenticatedUser(
            user_id=claims["sub"],
            email=claims.get("email"),
            role=claims.get("role"),
        )

    async def __call__(self, authorization: Optional[str] = Header(None)) -> AuthenticatedUser:
        if not authorization:
            raise _unauthenticated("No authorization header")

        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise _unauthenticated("Authorization header must be a bearer token")

        return self.decode(token.strip())


async def require_admin_key(x_admin_key: Optional[str] = Header(None)) -> None:
    """Guard for operator endpoints"""
    expected = get_settings().admin_api_key
    if not expected:
        raise HTTPException(
            status_code=503,
            detail={"code": "admin_disabled", "message": "Operator endpoints are disabled"},
        )
    if x_admin_key != expected:
        raise HTTPException(
            status_code=403,
            detail={"code": "forbidden", "message": "Invalid admin key"},
        )


# Dependency instances
require_user = BearerAuth()
