"""Auth module: bearer-token identity for API callers."""

from inventra.modules.auth.auth import (
    AuthenticatedUser,
    authenticate_token,
    create_access_token,
    get_current_user,
)

__all__ = [
    "AuthenticatedUser",
    "authenticate_token",
    "create_access_token",
    "get_current_user",
]
