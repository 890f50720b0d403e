"""Role templates and their global (system) assignments."""

from sqlalchemy import String, Integer, Boolean, ForeignKey, Enum, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING

from servicedesk.models.base import Base, TimestampMixin
from servicedesk.models.role import RoleScope

if TYPE_CHECKING:
    from servicedesk.models.user import User
    from servicedesk.models.account_membership import MembershipRole


class RoleTemplate(Base, TimestampMixin):
    """
    Named, reusable bundle of ``resource:action`` permission strings.

    A template with ``inherit_all_permissions`` set is a super-admin role:
    it satisfies every permission check wherever it applies, regardless of
    its explicit permission list.

    ``scope`` decides how the template can be attached:
    - GLOBAL templates are assigned to users through SystemRole
    - ACCOUNT templates are assigned through AccountMembership (MembershipRole)
    """

    __tablename__ = "role_templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    permissions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    inherit_all_permissions: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_system_role: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    scope: Mapped[RoleScope] = mapped_column(
        Enum(RoleScope, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=RoleScope.ACCOUNT,
    )

    # Relationships
    system_roles: Mapped[list["SystemRole"]] = relationship(
        "SystemRole", back_populates="role"
    )
    membership_roles: Mapped[list["MembershipRole"]] = relationship(
        "MembershipRole", back_populates="role"
    )

    def __repr__(self) -> str:
        return f"<RoleTemplate(id={self.id}, name='{self.name}', inherit_all={self.inherit_all_permissions})>"


class SystemRole(Base):
    """Global assignment of a role template to a user, outside any account"""

    __tablename__ = "system_roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("role_templates.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="system_roles")
    role: Mapped["RoleTemplate"] = relationship("RoleTemplate", back_populates="system_roles")

    __table_args__ = (
        UniqueConstraint("user_id", "role_id", name="uq_system_role_user_role"),
    )
