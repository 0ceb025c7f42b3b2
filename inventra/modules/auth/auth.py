"""JWT authentication dependency for FastAPI.

Validates Bearer tokens from the Authorization header, extracts user claims,
and sets request.state.user for downstream dependencies. Token issuance
lives with the identity provider; ``create_access_token`` mints tokens with
the same claims for tooling and tests.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from inventra.config import settings
from inventra.exceptions import UnauthorizedException

logger = logging.getLogger(__name__)

# FastAPI security scheme: extracts Bearer token from Authorization header
_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthenticatedUser:
    """Represents the authenticated user extracted from a JWT token."""

    id: uuid.UUID
    email: str
    role: str = "USER"


def _decode_token(token: str) -> dict:
    """Decode and validate a JWT token. Raises UnauthorizedException on failure."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        return payload
    except JWTError as exc:
        logger.warning("JWT validation failed: %s", exc)
        raise UnauthorizedException("Invalid or expired token") from exc


def authenticate_token(token: str) -> AuthenticatedUser:
    """Resolve a raw JWT into an AuthenticatedUser."""
    payload = _decode_token(token)
    try:
        return AuthenticatedUser(
            id=uuid.UUID(payload["sub"]),
            email=payload["email"],
            role=payload.get("role", "USER"),
        )
    except (KeyError, ValueError) as exc:
        raise UnauthorizedException("Token is missing required claims") from exc


def create_access_token(
    user_id: uuid.UUID,
    email: str,
    role: str = "USER",
    expires_in: timedelta | None = None,
) -> str:
    """Mint a signed access token carrying the claims ``authenticate_token`` reads."""
    expires_at = datetime.now(UTC) + (
        expires_in or timedelta(minutes=settings.jwt_expiry_minutes)
    )
    claims = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "exp": expires_at,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> AuthenticatedUser:
    """FastAPI dependency that extracts and validates the current user from JWT."""
    if credentials is None:
        raise UnauthorizedException("Authentication required")

    user = authenticate_token(credentials.credentials)

    request.state.user = user
    return user
