"""Shared enum values used by the database models and schemas."""

from __future__ import annotations

import enum


class UserRole(str, enum.Enum):
    admin = "Admin"
    manager = "Manager"
    editor = "Editor"
    contributor = "Contributor"
    user = "User"
    guest = "Guest"


DEFAULT_ROLE = UserRole.user


class AuthEvent(str, enum.Enum):
    registered = "user.registered"
    logged_in = "user.logged_in"
    logged_out = "user.logged_out"
    logged_out_all = "user.logged_out_all"
    password_changed = "user.password_changed"
    tokens_refreshed = "user.tokens_refreshed"
