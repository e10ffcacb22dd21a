"""Role based access policy.

A pure lookup table from role to permitted actions. Services call
require_permission() before touching storage.
"""
from catalogmaster.data_structures import Role
from catalogmaster.exceptions import PermissionDenied


class Permission:
    VIEW_CATALOG = "view_catalog"
    EDIT_CATALOG = "edit_catalog"
    MANAGE_SETTINGS = "manage_settings"
    MANAGE_USERS = "manage_users"
    VIEW_LEDGER = "view_ledger"
    EDIT_LEDGER = "edit_ledger"


ROLE_PERMISSIONS = {
    Role.ADMIN: frozenset({
        Permission.VIEW_CATALOG,
        Permission.EDIT_CATALOG,
        Permission.MANAGE_SETTINGS,
        Permission.MANAGE_USERS,
        Permission.VIEW_LEDGER,
        Permission.EDIT_LEDGER,
    }),
    Role.OWNER: frozenset({
        Permission.VIEW_CATALOG,
        Permission.VIEW_LEDGER,
    }),
    Role.USER: frozenset({
        Permission.VIEW_CATALOG,
    }),
}


def permissions_for(role):
    """Permissions granted to a role; unknown roles get none."""
    return ROLE_PERMISSIONS.get(role, frozenset())


def is_allowed(role, permission):
    return permission in permissions_for(role)


def require_permission(actor, permission):
    """Raise PermissionDenied unless `actor` (a User) holds `permission`."""
    if actor is None:
        raise PermissionDenied(permission)
    if not is_allowed(actor.role, permission):
        raise PermissionDenied(permission, actor.role, actor.username)
