"""Repository for UserPermission model operations."""

from sqlalchemy.orm import Session
from servicedesk.core.permissions import PermissionScope
from servicedesk.models.user_permission import UserPermission


class UserPermissionRepository:
    """Repository for direct user permission grants"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_user(self, user_id: int) -> list[UserPermission]:
        """
        Get all direct grants for a user.

        Args:
            user_id: User ID

        Returns:
            List of UserPermission rows ordered by permission name
        """
        return (
            self.db.query(UserPermission)
            .filter(UserPermission.user_id == user_id)
            .order_by(UserPermission.permission_name, UserPermission.id)
            .all()
        )

    def get_by_id_and_user(self, permission_id: int, user_id: int) -> UserPermission | None:
        """Get grant ensuring it belongs to the user"""
        return (
            self.db.query(UserPermission)
            .filter(UserPermission.id == permission_id, UserPermission.user_id == user_id)
            .first()
        )

    def exists(self, user_id: int, permission_name: str, scope: PermissionScope) -> bool:
        """Check whether an identical grant already exists"""
        return (
            self.db.query(UserPermission.id)
            .filter(
                UserPermission.user_id == user_id,
                UserPermission.permission_name == permission_name,
                UserPermission.scope == scope,
            )
            .first()
            is not None
        )

    def create(self, permission: UserPermission) -> UserPermission:
        """Create new grant"""
        self.db.add(permission)
        self.db.commit()
        self.db.refresh(permission)
        return permission

    def delete(self, permission: UserPermission) -> None:
        """Delete grant"""
        self.db.delete(permission)
        self.db.commit()
