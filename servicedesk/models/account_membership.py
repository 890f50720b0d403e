"""Account membership model linking users to accounts with role templates."""

from sqlalchemy import Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING

from servicedesk.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from servicedesk.models.user import User
    from servicedesk.models.account import Account
    from servicedesk.models.role_template import RoleTemplate


class AccountMembership(Base, TimestampMixin):
    """
    Join table linking users to accounts.

    This model enables:
    - Multiple users per account
    - One user belonging to many accounts (one membership each)
    - Zero or more role templates per membership (MembershipRole)

    Example memberships:
    - User "Alice" in account "Acme Corp" with role "Account Manager"
    - User "Alice" in account "Acme Labs" with roles "Account Viewer" and "Account User"

    Constraints:
    - Unique(user_id, account_id) - one membership per user per account
    """

    __tablename__ = "account_memberships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    account_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="memberships")
    account: Mapped["Account"] = relationship("Account", back_populates="memberships")
    roles: Mapped[list["MembershipRole"]] = relationship(
        "MembershipRole",
        back_populates="membership",
        cascade="all, delete-orphan",
    )

    # Constraints
    __table_args__ = (
        UniqueConstraint("user_id", "account_id", name="uq_membership_user_account"),
    )

    def __repr__(self) -> str:
        return f"<AccountMembership(user_id={self.user_id}, account_id={self.account_id})>"


class MembershipRole(Base):
    """Assignment of a role template to an account membership"""

    __tablename__ = "membership_roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    membership_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("account_memberships.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("role_templates.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Relationships
    membership: Mapped["AccountMembership"] = relationship(
        "AccountMembership", back_populates="roles"
    )
    role: Mapped["RoleTemplate"] = relationship("RoleTemplate", back_populates="membership_roles")

    __table_args__ = (
        UniqueConstraint("membership_id", "role_id", name="uq_membership_role"),
    )
