"""Direct permission grants attached to a single user."""

from sqlalchemy import String, Integer, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING

from servicedesk.core.permissions import PermissionScope
from servicedesk.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from servicedesk.models.user import User


class UserPermission(Base, TimestampMixin):
    """
    A grant of one ``resource:action`` pair to one user.

    Direct grants apply regardless of account context; their reach is
    expressed by ``scope`` (own < account < subsidiary < global).
    """

    __tablename__ = "user_permissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    permission_name: Mapped[str] = mapped_column(String(100), nullable=False)
    resource: Mapped[str] = mapped_column(String(50), nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    scope: Mapped[PermissionScope] = mapped_column(
        Enum(PermissionScope, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=PermissionScope.OWN,
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="permissions")

    __table_args__ = (
        UniqueConstraint("user_id", "permission_name", "scope", name="uq_user_permission_scope"),
    )

    def __repr__(self) -> str:
        return f"<UserPermission(user_id={self.user_id}, permission='{self.permission_name}', scope={self.scope.value})>"
