"""Convenience imports for Alembic metadata discovery."""

from bookdb.models.user import User, UserRoleAssignment
from bookdb.models.refresh_token import RefreshToken

__all__ = ["User", "UserRoleAssignment", "RefreshToken"]
