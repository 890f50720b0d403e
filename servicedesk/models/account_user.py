from datetime import datetime
from sqlalchemy import String, Integer, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING, Optional
from servicedesk.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from servicedesk.models.account import Account
    from servicedesk.models.user import User


class AccountUser(Base, TimestampMixin):
    """
    Customer-side portal identity belonging to one account.

    Created by invitation; ``user_id`` stays empty until the invitee signs in
    and accepts, at which point the AccountUser is linked to a User and an
    AccountMembership is created for the account.

    ``permissions`` holds embedded portal flags (e.g. {"tickets:create": true}).
    """

    __tablename__ = "account_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    invitation_token: Mapped[str | None] = mapped_column(
        String(255), nullable=True, unique=True, index=True
    )
    invitation_expiry: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    permissions: Mapped[dict | None] = mapped_column(JSON, nullable=True, default=dict)

    # Relationships
    account: Mapped["Account"] = relationship("Account", back_populates="account_users")
    user: Mapped[Optional["User"]] = relationship("User")

    @property
    def is_activated(self) -> bool:
        return self.user_id is not None
