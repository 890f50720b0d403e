import logging
from sqlalchemy.orm import Session

from servicedesk.core.cache import PermissionCache
from servicedesk.core.exceptions import ConflictException, NotFoundException
from servicedesk.core.permissions import validate_permission
from servicedesk.models.role_template import RoleTemplate
from servicedesk.repositories.role_template_repository import RoleTemplateRepository
from servicedesk.schemas.role_template_schemas import RoleTemplateCreate, RoleTemplateUpdate

logger = logging.getLogger(__name__)


class RoleTemplateService:
    """Service layer for role template management"""

    def __init__(self, db: Session, cache: PermissionCache | None = None):
        self.db = db
        self.cache = cache
        self.repo = RoleTemplateRepository(db)

    def list_templates(self) -> list[RoleTemplate]:
        """List templates: super-admin roles first, then system roles, then by name"""
        return self.repo.get_all()

    def get_template(self, role_id: int) -> RoleTemplate:
        """
        Get a role template.

        Raises:
            NotFoundException: If template not found
        """
        role = self.repo.get_by_id(role_id)
        if not role:
            raise NotFoundException("Role template not found")
        return role

    def create_template(self, data: RoleTemplateCreate) -> RoleTemplate:
        """
        Create a role template.

        Permission strings are validated against the registry here, so
        unknown ``resource:action`` pairs never reach the evaluator.

        Raises:
            ValidationException: If a permission is malformed or unregistered
            ConflictException: If the name is already taken
        """
        name = data.name.strip()
        permissions = self._validated(data.permissions)

        if self.repo.get_by_name(name):
            raise ConflictException("Role name already exists")

        role = RoleTemplate(
            name=name,
            description=data.description.strip() if data.description else None,
            permissions=permissions,
            inherit_all_permissions=data.inherit_all_permissions,
            is_system_role=data.is_system_role,
            scope=data.scope,
        )
        role = self.repo.create(role)
        logger.info(
            "Created role template %s (id=%s, inherit_all=%s)",
            role.name,
            role.id,
            role.inherit_all_permissions,
        )
        return role

    def update_template(self, role_id: int, data: RoleTemplateUpdate) -> RoleTemplate:
        """
        Update a role template.

        Every holder of the template is affected, so the whole decision
        cache is cleared.

        Raises:
            NotFoundException: If template not found
            ValidationException: If a permission is malformed or unregistered
            ConflictException: If the name is taken, or the scope changes while
                the template is assigned
        """
        role = self.get_template(role_id)

        if data.scope is not None and data.scope != role.scope:
            membership_count, system_count = self.repo.usage_counts(role.id)
            if membership_count or system_count:
                raise ConflictException(
                    "Cannot change the scope of an assigned role template; "
                    "remove the assignments first"
                )

        if data.name is not None:
            name = data.name.strip()
            existing = self.repo.get_by_name(name)
            if existing and existing.id != role.id:
                raise ConflictException("Role name already exists")
            role.name = name
        if data.description is not None:
            role.description = data.description.strip() or None
        if data.permissions is not None:
            role.permissions = self._validated(data.permissions)
        if data.inherit_all_permissions is not None:
            role.inherit_all_permissions = data.inherit_all_permissions
        if data.scope is not None:
            role.scope = data.scope

        role = self.repo.update(role)
        if self.cache is not None:
            self.cache.clear()
        logger.info("Updated role template %s (id=%s)", role.name, role.id)
        return role

    def delete_template(self, role_id: int) -> None:
        """
        Delete an unassigned role template.

        Raises:
            NotFoundException: If template not found
            ConflictException: If still assigned to memberships or system roles
        """
        role = self.get_template(role_id)
        membership_count, system_count = self.repo.usage_counts(role.id)
        if membership_count or system_count:
            raise ConflictException(
                f"Role template is assigned to {membership_count} membership(s) "
                f"and {system_count} user(s); remove the assignments first"
            )
        self.repo.delete(role)
        logger.info("Deleted role template %s (id=%s)", role.name, role_id)

    @staticmethod
    def _validated(permissions: list[str]) -> list[str]:
        names: list[str] = []
        for name in permissions:
            permission = validate_permission(name)
            if permission.name not in names:
                names.append(permission.name)
        return names
