import logging
from sqlalchemy.orm import Session

from servicedesk.core.cache import PermissionCache
from servicedesk.core.exceptions import (
    ConflictException,
    NotFoundException,
    ValidationException,
)
from servicedesk.core.permissions import validate_permission
from servicedesk.models.role import RoleScope
from servicedesk.models.role_template import SystemRole
from servicedesk.models.user import User
from servicedesk.models.user_permission import UserPermission
from servicedesk.repositories.role_template_repository import (
    RoleTemplateRepository,
    SystemRoleRepository,
)
from servicedesk.repositories.user_permission_repository import UserPermissionRepository
from servicedesk.repositories.user_repository import UserRepository
from servicedesk.schemas.permission_schemas import UserPermissionCreate

logger = logging.getLogger(__name__)


class GrantService:
    """
    Direct user permission grants and global role assignments.

    Every mutation invalidates the affected user's cached permissions.
    """

    def __init__(self, db: Session, cache: PermissionCache | None = None):
        self.db = db
        self.cache = cache
        self.user_repo = UserRepository(db)
        self.permission_repo = UserPermissionRepository(db)
        self.role_repo = RoleTemplateRepository(db)
        self.system_role_repo = SystemRoleRepository(db)

    def get_user(self, user_id: int) -> User:
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundException("User not found")
        return user

    def list_permissions(self, user_id: int) -> list[UserPermission]:
        """List direct grants of a user"""
        user = self.get_user(user_id)
        return self.permission_repo.get_by_user(user.id)

    def grant_permission(self, user_id: int, data: UserPermissionCreate) -> UserPermission:
        """
        Grant a registered permission directly to a user.

        Raises:
            NotFoundException: If user not found
            ValidationException: If the permission is malformed, a wildcard, or unregistered
            ConflictException: If the same grant already exists
        """
        user = self.get_user(user_id)
        permission = validate_permission(data.permission, allow_wildcard=False)

        if self.permission_repo.exists(user.id, permission.name, data.scope):
            raise ConflictException(
                f"User already holds {permission.name} with scope {data.scope.value}"
            )

        grant = UserPermission(
            user_id=user.id,
            permission_name=permission.name,
            resource=permission.resource,
            action=permission.action,
            scope=data.scope,
        )
        grant = self.permission_repo.create(grant)
        self._invalidate(user.id)
        logger.info(
            "Granted %s (scope=%s) to user %s", permission.name, data.scope.value, user.id
        )
        return grant

    def revoke_permission(self, user_id: int, permission_id: int) -> None:
        """
        Revoke a direct grant.

        Raises:
            NotFoundException: If the grant does not exist for this user
        """
        grant = self.permission_repo.get_by_id_and_user(permission_id, user_id)
        if not grant:
            raise NotFoundException("Permission grant not found")
        self.permission_repo.delete(grant)
        self._invalidate(user_id)
        logger.info("Revoked %s from user %s", grant.permission_name, user_id)

    def list_system_roles(self, user_id: int) -> list[SystemRole]:
        user = self.get_user(user_id)
        return self.system_role_repo.get_by_user(user.id)

    def assign_system_role(self, user_id: int, role_id: int) -> SystemRole:
        """
        Assign a global role template to a user.

        Raises:
            NotFoundException: If user or template not found
            ValidationException: If the template is account-scoped
            ConflictException: If already assigned
        """
        user = self.get_user(user_id)
        role = self.role_repo.get_by_id(role_id)
        if not role:
            raise NotFoundException("Role template not found")
        if role.scope != RoleScope.GLOBAL:
            raise ValidationException(
                f"Role template '{role.name}' is account-scoped; assign it through a membership"
            )
        if self.system_role_repo.get(user.id, role.id):
            raise ConflictException(f"User already holds system role '{role.name}'")

        system_role = self.system_role_repo.create(SystemRole(user_id=user.id, role_id=role.id))
        self._invalidate(user.id)
        logger.info("Assigned system role %s to user %s", role.name, user.id)
        return system_role

    def remove_system_role(self, user_id: int, role_id: int) -> None:
        """
        Remove a global role assignment.

        Raises:
            NotFoundException: If the assignment does not exist
        """
        system_role = self.system_role_repo.get(user_id, role_id)
        if not system_role:
            raise NotFoundException("System role assignment not found")
        self.system_role_repo.delete(system_role)
        self._invalidate(user_id)
        logger.info("Removed system role %s from user %s", role_id, user_id)

    def _invalidate(self, user_id: int) -> None:
        if self.cache is not None:
            self.cache.invalidate(user_id)
