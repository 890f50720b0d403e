import logging
import secrets
from datetime import UTC, datetime, timedelta
from sqlalchemy.orm import Session

from servicedesk.config import settings
from servicedesk.core.cache import PermissionCache
from servicedesk.core.exceptions import (
    ConflictException,
    NotFoundException,
    ValidationException,
)
from servicedesk.core.permissions import validate_permission
from servicedesk.models.account_user import AccountUser
from servicedesk.models.role import UserRole
from servicedesk.models.base import utcnow
from servicedesk.models.user import User
from servicedesk.repositories.account_repository import AccountRepository
from servicedesk.repositories.account_user_repository import AccountUserRepository
from servicedesk.schemas.account_user_schemas import AccountUserInvite
from servicedesk.services.membership_service import MembershipService

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=UTC)


class AccountUserService:
    """
    Invitation flow for customer-side account users.

    An invitation creates an inactive-link AccountUser holding a one-time
    token. Accepting it links the signed-in User, creates the account
    membership and attaches the default account role template.
    """

    def __init__(self, db: Session, cache: PermissionCache | None = None):
        self.db = db
        self.cache = cache
        self.repo = AccountUserRepository(db)
        self.account_repo = AccountRepository(db)
        self.memberships = MembershipService(db, cache)

    def list_account_users(self, account_id: int) -> list[AccountUser]:
        if not self.account_repo.get_by_id(account_id):
            raise NotFoundException("Account not found")
        return self.repo.get_by_account(account_id)

    def invite(self, account_id: int, data: AccountUserInvite) -> AccountUser:
        """
        Invite a user to an account.

        Raises:
            NotFoundException: If account not found
            ConflictException: If the email is already invited to this account
            ValidationException: If a permission flag is malformed, a wildcard, or unregistered
        """
        if not self.account_repo.get_by_id(account_id):
            raise NotFoundException("Account not found")

        email = data.email.strip().lower()
        if self.repo.get_by_email_and_account(email, account_id):
            raise ConflictException(f"{email} is already invited to this account")

        flags = {
            validate_permission(name, allow_wildcard=False).name: bool(enabled)
            for name, enabled in data.permissions.items()
        }

        account_user = AccountUser(
            account_id=account_id,
            email=email,
            name=data.name.strip(),
            phone=data.phone,
            is_active=True,
            invitation_token=secrets.token_urlsafe(32),
            invitation_expiry=utcnow() + timedelta(days=settings.INVITATION_EXPIRY_DAYS),
            permissions=flags,
        )
        account_user = self.repo.create(account_user)
        logger.info("Invited %s to account %s", email, account_id)
        return account_user

    def verify_invitation(self, token: str) -> AccountUser:
        """
        Look up a pending invitation without accepting it.

        Raises:
            NotFoundException: If the token is unknown
            ValidationException: If the invitation expired, was revoked or was already accepted
        """
        account_user = self.repo.get_by_token(token)
        if not account_user:
            raise NotFoundException("Invitation not found")
        self._ensure_pending(account_user)
        return account_user

    def resend_invitation(self, account_id: int, account_user_id: int) -> AccountUser:
        """
        Issue a fresh token and expiry for an invitation not yet accepted.

        The previous token stops working.

        Raises:
            NotFoundException: If the account user is not in this account
            ValidationException: If the invitation was already accepted
        """
        account_user = self.repo.get_by_id(account_user_id)
        if not account_user or account_user.account_id != account_id:
            raise NotFoundException("Account user not found")
        if account_user.is_activated:
            raise ValidationException("User has already accepted the invitation")

        account_user.invitation_token = secrets.token_urlsafe(32)
        account_user.invitation_expiry = utcnow() + timedelta(days=settings.INVITATION_EXPIRY_DAYS)
        account_user = self.repo.update(account_user)
        logger.info("Reissued invitation for %s to account %s", account_user.email, account_id)
        return account_user

    def accept_invitation(self, token: str, user: User) -> AccountUser:
        """
        Accept an invitation as the signed-in user.

        The user becomes an ``account_user`` identity, is linked to the
        invitation and gets a membership with the default account role.

        Raises:
            NotFoundException: If the token is unknown
            ValidationException: If the invitation expired or was already accepted
            ConflictException: If the user is already linked to another account user
        """
        account_user = self.repo.get_by_token(token)
        if not account_user:
            raise NotFoundException("Invitation not found")
        self._ensure_pending(account_user)

        existing = self.repo.get_by_user(user.id)
        if existing and existing.id != account_user.id:
            raise ConflictException("User is already linked to another account user")

        account_user.user_id = user.id
        account_user.invitation_token = None
        account_user.invitation_expiry = None
        if user.role != UserRole.ADMIN:
            user.role = UserRole.ACCOUNT_USER
        account_user = self.repo.update(account_user)

        self.memberships.ensure_membership(
            user, account_user.account_id, settings.DEFAULT_ACCOUNT_ROLE
        )
        logger.info(
            "User %s accepted invitation to account %s", user.id, account_user.account_id
        )
        return account_user

    @staticmethod
    def _ensure_pending(account_user: AccountUser) -> None:
        if account_user.is_activated:
            raise ValidationException("Invitation already accepted")
        if not account_user.is_active:
            raise ValidationException("Invitation has been revoked")
        if account_user.invitation_expiry and _as_utc(account_user.invitation_expiry) < utcnow():
            raise ValidationException("Invitation has expired")
