"""
Permission registry and value objects.

Permissions are written as ``resource:action`` strings in role templates and
grant rows. The registry below is the closed set of pairs the application
knows about; anything else is rejected when a grant or template is written.
Wildcards ``resource:*`` and ``*:*`` are accepted in role templates.
"""

import re
from dataclasses import dataclass
from enum import Enum as PyEnum

from servicedesk.core.exceptions import ValidationException

WILDCARD = "*"

PERMISSION_PATTERN = re.compile(r"^(?P<resource>[a-z-]+|\*):(?P<action>[a-z-]+|\*)$")


class PermissionScope(str, PyEnum):
    """
    Reach of a grant, ordered from narrowest to widest.

    - OWN - records created by the user
    - ACCOUNT - records of a single account
    - SUBSIDIARY - records of an account and its descendants
    - GLOBAL - every record in the system
    """

    OWN = "own"
    ACCOUNT = "account"
    SUBSIDIARY = "subsidiary"
    GLOBAL = "global"

    @property
    def rank(self) -> int:
        return _SCOPE_RANK[self]

    def covers(self, requested: "PermissionScope | None") -> bool:
        """True if a grant with this scope satisfies a check for ``requested``"""
        if requested is None:
            return True
        return self.rank >= requested.rank


_SCOPE_RANK = {
    PermissionScope.OWN: 0,
    PermissionScope.ACCOUNT: 1,
    PermissionScope.SUBSIDIARY: 2,
    PermissionScope.GLOBAL: 3,
}


@dataclass(frozen=True)
class Permission:
    """A ``resource:action`` pair, possibly containing wildcards"""

    resource: str
    action: str

    @classmethod
    def parse(cls, name: str) -> "Permission":
        """
        Parse a ``resource:action`` string.

        Raises:
            ValidationException: If the string is not in resource:action form
        """
        match = PERMISSION_PATTERN.match(name or "")
        if not match:
            raise ValidationException(
                f'Invalid permission format: {name}. Expected format: "resource:action"'
            )
        return cls(resource=match.group("resource"), action=match.group("action"))

    @property
    def name(self) -> str:
        return f"{self.resource}:{self.action}"

    @property
    def is_wildcard(self) -> bool:
        return self.resource == WILDCARD or self.action == WILDCARD

    def matches(self, other: "Permission") -> bool:
        """
        True if this (possibly wildcard) grant covers ``other``.

        ``tickets:*`` matches every tickets action and ``*:*`` matches
        everything. The unsupported ``*:action`` form matches nothing.
        """
        if self.resource == WILDCARD:
            return self.action == WILDCARD
        if self.resource != other.resource:
            return False
        return self.action in (WILDCARD, other.action)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class PermissionDefinition:
    permission: Permission
    description: str


def from_stored(name: str) -> Permission | None:
    """Parse a permission string read back from storage; None if malformed"""
    match = PERMISSION_PATTERN.match(name or "")
    if not match:
        return None
    return Permission(match.group("resource"), match.group("action"))


def _define(resource: str, actions: dict[str, str]) -> dict[str, PermissionDefinition]:
    return {
        action: PermissionDefinition(Permission(resource, action), description)
        for action, description in actions.items()
    }


PERMISSIONS_REGISTRY: dict[str, dict[str, PermissionDefinition]] = {
    "time-entries": _define(
        "time-entries",
        {
            "view": "View time entries",
            "create": "Create new time entries",
            "update": "Edit existing time entries",
            "delete": "Delete time entries",
            "approve": "Approve time entries for invoicing",
            "reject": "Reject time entries",
        },
    ),
    "billing": _define(
        "billing",
        {
            "view": "View billing rates and revenue information",
            "create": "Create billing rates",
            "update": "Update billing rates",
            "delete": "Delete billing rates",
        },
    ),
    "reports": _define(
        "reports",
        {
            "view": "View reports and analytics",
            "export": "Export reports and data",
        },
    ),
    "tickets": _define(
        "tickets",
        {
            "view": "View tickets",
            "create": "Create new tickets",
            "update": "Edit existing tickets",
            "delete": "Delete tickets",
            "assign": "Assign tickets to users",
        },
    ),
    "accounts": _define(
        "accounts",
        {
            "view": "View accounts",
            "create": "Create new accounts",
            "update": "Edit existing accounts",
            "delete": "Delete accounts",
        },
    ),
    "users": _define(
        "users",
        {
            "view": "View user lists and account users",
            "create": "Create new account users",
            "update": "Edit user information",
            "delete": "Remove users from accounts",
            "invite": "Send user invitations",
            "manage": "Manage user status, memberships and roles",
        },
    ),
    "email": _define(
        "email",
        {
            "send": "Send emails through the system",
            "templates": "Manage email templates",
            "settings": "Configure SMTP and email settings",
            "queue": "View and manage email queue",
        },
    ),
    "settings": _define(
        "settings",
        {
            "view": "View system settings",
            "update": "Update system settings",
        },
    ),
    "system": _define(
        "system",
        {
            "admin": "Full system administration access",
            "backup": "Create and manage backups",
            "logs": "View system logs",
        },
    ),
    "role-templates": _define(
        "role-templates",
        {
            "view": "View role templates",
            "create": "Create role templates",
            "update": "Edit role templates",
            "delete": "Delete role templates",
        },
    ),
    "permissions": _define(
        "permissions",
        {
            "view": "View direct user permission grants",
            "create": "Grant permissions directly to users",
            "delete": "Revoke direct user permission grants",
        },
    ),
}


def all_permissions() -> list[PermissionDefinition]:
    """Every registered permission, in registry order"""
    return [
        definition
        for actions in PERMISSIONS_REGISTRY.values()
        for definition in actions.values()
    ]


def is_registered(permission: Permission) -> bool:
    """True if the permission (or wildcard) refers only to registered pairs"""
    if permission.resource == WILDCARD:
        # "*:action" is not a supported form
        return permission.action == WILDCARD
    actions = PERMISSIONS_REGISTRY.get(permission.resource)
    if actions is None:
        return False
    return permission.action == WILDCARD or permission.action in actions


def expand(permission: Permission) -> list[Permission]:
    """Registered permissions covered by a (possibly wildcard) permission"""
    if permission.resource == WILDCARD:
        return [definition.permission for definition in all_permissions()]
    actions = PERMISSIONS_REGISTRY.get(permission.resource, {})
    if permission.action == WILDCARD:
        return [definition.permission for definition in actions.values()]
    definition = actions.get(permission.action)
    return [definition.permission] if definition else []


def validate_permission(name: str, allow_wildcard: bool = True) -> Permission:
    """
    Validate a permission string against the registry.

    Args:
        name: ``resource:action`` string
        allow_wildcard: Whether ``resource:*`` / ``*:*`` forms are accepted

    Returns:
        Parsed Permission

    Raises:
        ValidationException: If malformed, an unexpected wildcard, or unregistered
    """
    permission = Permission.parse(name)
    if permission.is_wildcard and not allow_wildcard:
        raise ValidationException(f"Wildcard permission not allowed here: {name}")
    if not is_registered(permission):
        raise ValidationException(f"Unknown permission: {name}")
    return permission


def _names(resource: str, *actions: str) -> list[str]:
    return [f"{resource}:{action}" for action in actions]


# Role templates seeded on a fresh database.
DEFAULT_ROLE_TEMPLATES: list[dict] = [
    {
        "name": "Super Admin",
        "description": "Unrestricted access to every resource",
        "permissions": [],
        "inherit_all_permissions": True,
        "is_system_role": True,
        "scope": "global",
    },
    {
        "name": "Employee",
        "description": "Internal staff working tickets and time entries",
        "permissions": (
            _names("time-entries", "view", "create", "update", "delete")
            + _names("tickets", "view", "create", "update")
            + _names("accounts", "view")
            + _names("reports", "view")
            + _names("users", "view")
        ),
        "inherit_all_permissions": False,
        "is_system_role": True,
        "scope": "global",
    },
    {
        "name": "Account User",
        "description": "Customer portal user",
        "permissions": _names("tickets", "view", "create") + _names("accounts", "view"),
        "inherit_all_permissions": False,
        "is_system_role": True,
        "scope": "account",
    },
    {
        "name": "Account Manager",
        "description": "Manages tickets and users within an account",
        "permissions": (
            _names("tickets", "view", "create", "update", "assign")
            + _names("accounts", "view")
            + _names("users", "view", "create", "invite")
            + _names("time-entries", "view")
            + _names("billing", "view")
        ),
        "inherit_all_permissions": False,
        "is_system_role": True,
        "scope": "account",
    },
    {
        "name": "Subsidiary Manager",
        "description": "Account manager with subsidiary administration",
        "permissions": (
            _names("tickets", "view", "create", "update", "assign")
            + _names("accounts", "view", "update")
            + _names("users", "view", "create", "invite", "manage")
            + _names("time-entries", "view")
            + _names("billing", "view")
            + _names("reports", "view")
        ),
        "inherit_all_permissions": False,
        "is_system_role": True,
        "scope": "account",
    },
    {
        "name": "Account Viewer",
        "description": "Read-only access to account information",
        "permissions": (
            _names("tickets", "view")
            + _names("accounts", "view")
            + _names("time-entries", "view")
            + _names("billing", "view")
        ),
        "inherit_all_permissions": False,
        "is_system_role": True,
        "scope": "account",
    },
]
