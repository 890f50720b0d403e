from sqlalchemy import String, Integer, Boolean, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING
from servicedesk.models.base import Base, TimestampMixin
from servicedesk.models.role import UserRole

if TYPE_CHECKING:
    from servicedesk.models.user_permission import UserPermission
    from servicedesk.models.role_template import SystemRole
    from servicedesk.models.account_membership import AccountMembership


class User(Base, TimestampMixin):
    """
    Internal identity tracked from the external auth provider.

    Only stores the JWT 'sub' claim plus profile fields - no credentials.
    Auto-created on first API request with a valid JWT.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    auth_user_id: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    # auth_user_id is the 'sub' claim from JWT
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=UserRole.EMPLOYEE,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Relationships
    permissions: Mapped[list["UserPermission"]] = relationship(
        "UserPermission",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    system_roles: Mapped[list["SystemRole"]] = relationship(
        "SystemRole",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    memberships: Mapped[list["AccountMembership"]] = relationship(
        "AccountMembership",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, auth_user_id='{self.auth_user_id}', role={self.role.value})>"
