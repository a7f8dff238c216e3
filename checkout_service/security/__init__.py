# Security modules

from .auth import AuthenticatedUser, BearerAuth, require_user, require_admin_key

__all__ = ["AuthenticatedUser", "BearerAuth", "require_user", "require_admin_key"]
