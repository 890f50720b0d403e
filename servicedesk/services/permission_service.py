"""
Permission evaluation engine.

A decision is the OR of every applicable grant:

- direct UserPermission rows (scope taken from the row, any account)
- role templates assigned globally through SystemRole (global scope)
- role templates attached to AccountMembership rows (subsidiary scope:
  a membership reaches its account and every descendant)
- permission flags of the AccountUser linked to the user (account scope,
  that account only)

A role template with ``inherit_all_permissions`` short-circuits to allow
wherever it applies. There are no deny rows, so adding a grant can only
turn a denial into an allow.
"""

import logging
from dataclasses import dataclass, field
from sqlalchemy import false
from sqlalchemy.orm import Query, Session
from sqlalchemy.sql.elements import ColumnElement

from servicedesk.core.cache import PermissionCache
from servicedesk.core.exceptions import NotFoundException
from servicedesk.core.permissions import (
    Permission,
    PermissionScope,
    all_permissions,
    expand,
    from_stored,
)
from servicedesk.repositories.account_repository import AccountRepository
from servicedesk.repositories.account_user_repository import AccountUserRepository
from servicedesk.repositories.membership_repository import MembershipRepository
from servicedesk.repositories.role_template_repository import RoleTemplateRepository
from servicedesk.repositories.user_permission_repository import UserPermissionRepository
from servicedesk.repositories.user_repository import UserRepository
from servicedesk.services.account_hierarchy import AccountHierarchy

logger = logging.getLogger(__name__)

# Effective scope of role-template grants
SYSTEM_ROLE_SCOPE = PermissionScope.GLOBAL
MEMBERSHIP_ROLE_SCOPE = PermissionScope.SUBSIDIARY
PORTAL_FLAG_SCOPE = PermissionScope.ACCOUNT


@dataclass
class UserPermissions:
    """
    Snapshot of every grant a user holds, resolved from storage.

    Attributes:
        user_id: Internal user ID
        is_super_admin: A globally assigned role template inherits all permissions
        system_permissions: Permission strings from global role templates
        account_permissions: Account ID -> permission strings from membership roles
        super_admin_accounts: Accounts where a membership role inherits all permissions
        direct_permissions: Permission string -> scopes of direct UserPermission grants
        member_account_ids: Accounts the user is a direct member of (with or without roles)
        portal_permissions: Account ID -> permission flags set on the linked AccountUser
    """

    user_id: int
    is_super_admin: bool = False
    system_permissions: set[str] = field(default_factory=set)
    account_permissions: dict[int, set[str]] = field(default_factory=dict)
    super_admin_accounts: set[int] = field(default_factory=set)
    direct_permissions: dict[str, set[PermissionScope]] = field(default_factory=dict)
    member_account_ids: list[int] = field(default_factory=list)
    portal_permissions: dict[int, set[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class PermissionCheck:
    """One (resource, action) question, optionally scoped to an account"""

    resource: str
    action: str
    account_id: int | None = None
    scope: PermissionScope | None = None

    @property
    def key(self) -> str:
        key = f"{self.resource}:{self.action}:{self.scope.value if self.scope else 'default'}"
        if self.account_id is not None:
            key = f"{key}@{self.account_id}"
        return key


@dataclass(frozen=True)
class EffectivePermission:
    resource: str
    action: str
    scope: str


class PermissionService:
    """Evaluates permission checks against the grant rows of one database session"""

    def __init__(self, db: Session, cache: PermissionCache | None = None):
        self.db = db
        self.cache = cache
        self.user_repo = UserRepository(db)
        self.user_permission_repo = UserPermissionRepository(db)
        self.role_repo = RoleTemplateRepository(db)
        self.membership_repo = MembershipRepository(db)
        self.account_repo = AccountRepository(db)
        self.account_user_repo = AccountUserRepository(db)
        self.hierarchy = AccountHierarchy(db)

    def get_user_permissions(self, user_id: int) -> UserPermissions | None:
        """
        Resolve every grant a user holds.

        Args:
            user_id: Internal user ID

        Returns:
            UserPermissions snapshot, or None if the user does not exist or
            is inactive
        """
        if self.cache is not None:
            cached = self.cache.get(user_id)
            if cached is not None:
                return cached

        user = self.user_repo.get_by_id(user_id)
        if user is None or not user.is_active:
            return None

        permissions = UserPermissions(user_id=user.id)

        for role in self.role_repo.get_system_roles_for_user(user.id):
            if role.inherit_all_permissions:
                permissions.is_super_admin = True
            permissions.system_permissions.update(role.permissions or [])

        for membership in self.membership_repo.get_user_memberships(user.id):
            permissions.member_account_ids.append(membership.account_id)
            account_perms: set[str] = set()
            for membership_role in membership.roles:
                role = membership_role.role
                if role.inherit_all_permissions:
                    permissions.super_admin_accounts.add(membership.account_id)
                account_perms.update(role.permissions or [])
            if account_perms:
                permissions.account_permissions[membership.account_id] = account_perms

        for grant in self.user_permission_repo.get_by_user(user.id):
            permissions.direct_permissions.setdefault(grant.permission_name, set()).add(grant.scope)

        account_user = self.account_user_repo.get_by_user(user.id)
        if account_user is not None and account_user.is_active:
            flags = {name for name, enabled in (account_user.permissions or {}).items() if enabled}
            if flags:
                permissions.portal_permissions[account_user.account_id] = flags

        if self.cache is not None:
            self.cache.set(user_id, permissions)
        return permissions

    def has_permission(
        self,
        user_id: int,
        resource: str,
        action: str,
        account_id: int | None = None,
        scope: PermissionScope | None = None,
    ) -> bool:
        """
        Decide whether a user may perform ``action`` on ``resource``.

        Args:
            user_id: Internal user ID (unknown or inactive users are denied)
            resource: Resource name, e.g. "tickets"
            action: Action name, e.g. "view"
            account_id: Restrict membership grants to this account and its
                ancestors; None considers every membership
            scope: Minimum reach the grant must have; None accepts any scope

        Returns:
            True iff at least one applicable grant allows the action
        """
        permissions = self.get_user_permissions(user_id)
        if permissions is None:
            logger.debug("Permission denied: user %s not found or inactive", user_id)
            return False
        return self._evaluate(permissions, PermissionCheck(resource, action, account_id, scope))

    def has_permissions(self, user_id: int, checks: list[PermissionCheck]) -> dict[str, bool]:
        """
        Evaluate several checks for one user against a single snapshot.

        Returns:
            Mapping of ``PermissionCheck.key`` to decision
        """
        permissions = self.get_user_permissions(user_id)
        results: dict[str, bool] = {}
        for check in checks:
            if permissions is None:
                results[check.key] = False
            else:
                results[check.key] = self._evaluate(permissions, check)
        return results

    def get_accessible_account_ids(self, user_id: int) -> list[int]:
        """
        Resolve the accounts a user may act on.

        Super admins reach every account. Everyone else reaches each account
        they are a member of plus all of its descendants.

        Returns:
            Sorted list of account IDs (empty for unknown users)
        """
        permissions = self.get_user_permissions(user_id)
        if permissions is None:
            return []
        if permissions.is_super_admin:
            return self.account_repo.get_all_ids()
        if not permissions.member_account_ids:
            return []
        return sorted(self.hierarchy.subtrees_ids(permissions.member_account_ids))

    def apply_account_filter(self, query: Query, column: ColumnElement, user_id: int) -> Query:
        """
        Restrict a query to rows whose ``column`` is an accessible account.

        The accessible set is resolved before the query runs so that no
        rows outside it are ever fetched.

        Args:
            query: Unexecuted SQLAlchemy query
            column: Account ID column to filter on (e.g. ``Account.id``)
            user_id: Internal user ID

        Returns:
            Filtered query (unchanged for super admins)
        """
        permissions = self.get_user_permissions(user_id)
        if permissions is not None and permissions.is_super_admin:
            return query
        account_ids = self.get_accessible_account_ids(user_id)
        if not account_ids:
            return query.filter(false())
        return query.filter(column.in_(account_ids))

    def get_effective_permissions(self, user_id: int) -> list[EffectivePermission]:
        """
        List every (resource, action, scope) a user holds, deduplicated.

        Scope is "global" for system role grants, the account ID for
        membership grants, and the grant scope for direct permissions.
        Wildcards and inherit-all roles are expanded against the registry.

        Raises:
            NotFoundException: If the user does not exist or is inactive
        """
        permissions = self.get_user_permissions(user_id)
        if permissions is None:
            raise NotFoundException("User not found")

        collected: set[EffectivePermission] = set()

        def add(names: list[Permission], scope: str) -> None:
            for permission in names:
                collected.add(EffectivePermission(permission.resource, permission.action, scope))

        registry = [definition.permission for definition in all_permissions()]

        if permissions.is_super_admin:
            add(registry, SYSTEM_ROLE_SCOPE.value)
        for name in permissions.system_permissions:
            add(self._expand_name(name), SYSTEM_ROLE_SCOPE.value)

        for account_id in permissions.super_admin_accounts:
            add(registry, str(account_id))
        for account_id, names in permissions.account_permissions.items():
            for name in names:
                add(self._expand_name(name), str(account_id))

        for name, scopes in permissions.direct_permissions.items():
            for scope in scopes:
                add(self._expand_name(name), scope.value)

        for account_id, names in permissions.portal_permissions.items():
            for name in names:
                add(self._expand_name(name), str(account_id))

        return sorted(collected, key=lambda p: (p.resource, p.action, p.scope))

    def _evaluate(self, permissions: UserPermissions, check: PermissionCheck) -> bool:
        if permissions.is_super_admin:
            return True

        if check.account_id is None:
            applicable_accounts = list(permissions.member_account_ids)
        else:
            chain = [check.account_id] + self.hierarchy.ancestor_ids(check.account_id)
            member_accounts = set(permissions.member_account_ids)
            applicable_accounts = [account_id for account_id in chain if account_id in member_accounts]

        requested = Permission(check.resource, check.action)

        for name, scopes in permissions.direct_permissions.items():
            if any(scope.covers(check.scope) for scope in scopes) and self._grants(name, requested):
                return True

        if SYSTEM_ROLE_SCOPE.covers(check.scope) and any(
            self._grants(name, requested) for name in permissions.system_permissions
        ):
            return True

        if MEMBERSHIP_ROLE_SCOPE.covers(check.scope):
            for account_id in applicable_accounts:
                if account_id in permissions.super_admin_accounts:
                    return True
                granted = permissions.account_permissions.get(account_id, set())
                if any(self._grants(name, requested) for name in granted):
                    return True

        if PORTAL_FLAG_SCOPE.covers(check.scope):
            for account_id, flags in permissions.portal_permissions.items():
                if check.account_id not in (None, account_id):
                    continue
                if any(self._grants(name, requested) for name in flags):
                    return True

        logger.debug(
            "Permission denied: user=%s permission=%s:%s account=%s scope=%s",
            permissions.user_id,
            check.resource,
            check.action,
            check.account_id,
            check.scope.value if check.scope else None,
        )
        return False

    @staticmethod
    def _grants(name: str, requested: Permission) -> bool:
        granted = from_stored(name)
        return granted is not None and granted.matches(requested)

    @staticmethod
    def _expand_name(name: str) -> list[Permission]:
        permission = from_stored(name)
        if permission is None:
            logger.warning("Ignoring malformed stored permission string: %r", name)
            return []
        return expand(permission)
