"""Centralized role policies for document and user management."""

from __future__ import annotations

from collections.abc import Iterable

from bookdb.models.enums import UserRole

Policy = str

REQUIRE_ADMIN_ROLE: Policy = "RequireAdminRole"
REQUIRE_MANAGER_ROLE: Policy = "RequireManagerRole"
REQUIRE_EDITOR_ROLE: Policy = "RequireEditorRole"
REQUIRE_CONTRIBUTOR_ROLE: Policy = "RequireContributorRole"
CAN_MANAGE_DOCUMENTS: Policy = "CanManageDocuments"
CAN_EDIT_DOCUMENTS: Policy = "CanEditDocuments"
CAN_VIEW_DOCUMENTS: Policy = "CanViewDocuments"
CAN_MANAGE_USERS: Policy = "CanManageUsers"

POLICY_ROLES: dict[Policy, frozenset[UserRole]] = {
    REQUIRE_ADMIN_ROLE: frozenset({UserRole.admin}),
    REQUIRE_MANAGER_ROLE: frozenset({UserRole.admin, UserRole.manager}),
    REQUIRE_EDITOR_ROLE: frozenset({UserRole.admin, UserRole.manager, UserRole.editor}),
    REQUIRE_CONTRIBUTOR_ROLE: frozenset(
        {UserRole.admin, UserRole.manager, UserRole.editor, UserRole.contributor}
    ),
    CAN_MANAGE_DOCUMENTS: frozenset({UserRole.admin, UserRole.manager, UserRole.editor}),
    CAN_EDIT_DOCUMENTS: frozenset(
        {UserRole.admin, UserRole.manager, UserRole.editor, UserRole.contributor}
    ),
    CAN_VIEW_DOCUMENTS: frozenset(UserRole),
    CAN_MANAGE_USERS: frozenset({UserRole.admin, UserRole.manager}),
}

ROLE_DESCRIPTIONS: dict[UserRole, str] = {
    UserRole.admin: "Full control over the system",
    UserRole.manager: "Manages documents and non-admin users",
    UserRole.editor: "Creates, edits and deletes documents",
    UserRole.contributor: "Creates and edits own documents",
    UserRole.user: "Views documents and manages own bookmarks",
    UserRole.guest: "Views public documents only",
}


def parse_roles(values: Iterable[str]) -> set[UserRole]:
    parsed: set[UserRole] = set()
    for value in values:
        try:
            parsed.add(UserRole(value))
        except ValueError:
            continue
    return parsed


def has_any_role(roles: Iterable[str], required: Iterable[UserRole]) -> bool:
    return bool(parse_roles(roles) & set(required))


def has_policy(roles: Iterable[str], policy: Policy) -> bool:
    allowed = POLICY_ROLES.get(policy)
    if allowed is None:
        return False
    return has_any_role(roles, allowed)
