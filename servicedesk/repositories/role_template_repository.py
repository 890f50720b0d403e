"""Repository for RoleTemplate and SystemRole model operations."""

from sqlalchemy import func
from sqlalchemy.orm import Session
from servicedesk.models.role_template import RoleTemplate, SystemRole
from servicedesk.models.account_membership import MembershipRole


class RoleTemplateRepository:
    """Repository for RoleTemplate model operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_all(self) -> list[RoleTemplate]:
        """
        Get all role templates.

        Returns:
            Templates ordered super-admin roles first, then system roles,
            then alphabetically
        """
        return (
            self.db.query(RoleTemplate)
            .order_by(
                RoleTemplate.inherit_all_permissions.desc(),
                RoleTemplate.is_system_role.desc(),
                RoleTemplate.name.asc(),
            )
            .all()
        )

    def get_by_id(self, role_id: int) -> RoleTemplate | None:
        """Get role template by ID"""
        return self.db.query(RoleTemplate).filter(RoleTemplate.id == role_id).first()

    def get_by_name(self, name: str) -> RoleTemplate | None:
        """Get role template by unique name"""
        return self.db.query(RoleTemplate).filter(RoleTemplate.name == name).first()

    def get_system_roles_for_user(self, user_id: int) -> list[RoleTemplate]:
        """
        Get role templates assigned globally to a user.

        Args:
            user_id: User ID

        Returns:
            List of RoleTemplate objects attached through SystemRole
        """
        return (
            self.db.query(RoleTemplate)
            .join(SystemRole, SystemRole.role_id == RoleTemplate.id)
            .filter(SystemRole.user_id == user_id)
            .all()
        )

    def usage_counts(self, role_id: int) -> tuple[int, int]:
        """
        Count assignments of a template.

        Returns:
            Tuple of (membership role count, system role count)
        """
        membership_count = (
            self.db.query(func.count(MembershipRole.id))
            .filter(MembershipRole.role_id == role_id)
            .scalar()
        )
        system_count = (
            self.db.query(func.count(SystemRole.id))
            .filter(SystemRole.role_id == role_id)
            .scalar()
        )
        return membership_count or 0, system_count or 0

    def create(self, role: RoleTemplate) -> RoleTemplate:
        """Create new role template"""
        self.db.add(role)
        self.db.commit()
        self.db.refresh(role)
        return role

    def update(self, role: RoleTemplate) -> RoleTemplate:
        """Update existing role template"""
        self.db.commit()
        self.db.refresh(role)
        return role

    def delete(self, role: RoleTemplate) -> None:
        """Delete role template"""
        self.db.delete(role)
        self.db.commit()


class SystemRoleRepository:
    """Repository for SystemRole model operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_user(self, user_id: int) -> list[SystemRole]:
        """Get all system role assignments for a user"""
        return self.db.query(SystemRole).filter(SystemRole.user_id == user_id).all()

    def get(self, user_id: int, role_id: int) -> SystemRole | None:
        """Get a single assignment"""
        return (
            self.db.query(SystemRole)
            .filter(SystemRole.user_id == user_id, SystemRole.role_id == role_id)
            .first()
        )

    def create(self, system_role: SystemRole) -> SystemRole:
        """Assign a role template globally"""
        self.db.add(system_role)
        self.db.commit()
        self.db.refresh(system_role)
        return system_role

    def delete(self, system_role: SystemRole) -> None:
        """Remove a global assignment"""
        self.db.delete(system_role)
        self.db.commit()
