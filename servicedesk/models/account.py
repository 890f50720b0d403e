from sqlalchemy import String, Integer, ForeignKey, Enum, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING, Optional
from servicedesk.models.base import Base, TimestampMixin
from servicedesk.models.role import AccountType

if TYPE_CHECKING:
    from servicedesk.models.account_membership import AccountMembership
    from servicedesk.models.account_user import AccountUser


class Account(Base, TimestampMixin):
    """
    Customer account, optionally nested under a parent account.

    The parent is set at creation time and is otherwise immutable. Access
    granted on a parent cascades to every descendant, never upwards.
    """

    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    account_type: Mapped[AccountType] = mapped_column(
        Enum(AccountType, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=AccountType.INDIVIDUAL,
    )
    parent_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,  # Hierarchy walks query children by parent_id
    )
    company_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    domains: Mapped[str | None] = mapped_column(Text, nullable=True)
    # domains: comma-separated email domains used for membership auto-assignment

    # Relationships
    parent: Mapped[Optional["Account"]] = relationship(
        "Account", remote_side="Account.id", back_populates="children"
    )
    children: Mapped[list["Account"]] = relationship("Account", back_populates="parent")
    memberships: Mapped[list["AccountMembership"]] = relationship(
        "AccountMembership",
        back_populates="account",
        cascade="all, delete-orphan",
    )
    account_users: Mapped[list["AccountUser"]] = relationship(
        "AccountUser",
        back_populates="account",
        cascade="all, delete-orphan",
    )

    @property
    def domain_list(self) -> list[str]:
        """Parse domains from comma-separated string"""
        if not self.domains:
            return []
        return [d.strip().lower() for d in self.domains.split(",") if d.strip()]

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, name='{self.name}', parent_id={self.parent_id})>"
