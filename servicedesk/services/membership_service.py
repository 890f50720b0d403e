import logging
from sqlalchemy.orm import Session

from servicedesk.core.cache import PermissionCache
from servicedesk.core.exceptions import (
    ConflictException,
    NotFoundException,
    ValidationException,
)
from servicedesk.models.account_membership import AccountMembership, MembershipRole
from servicedesk.models.role import RoleScope
from servicedesk.models.role_template import RoleTemplate
from servicedesk.models.user import User
from servicedesk.repositories.account_repository import AccountRepository
from servicedesk.repositories.membership_repository import MembershipRepository
from servicedesk.repositories.role_template_repository import RoleTemplateRepository
from servicedesk.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class MembershipService:
    """
    Service layer for account memberships and their role templates.

    Every mutation invalidates the member's cached permissions.
    """

    def __init__(self, db: Session, cache: PermissionCache | None = None):
        self.db = db
        self.cache = cache
        self.membership_repo = MembershipRepository(db)
        self.account_repo = AccountRepository(db)
        self.role_repo = RoleTemplateRepository(db)
        self.user_repo = UserRepository(db)

    def get_members(self, account_id: int) -> list[dict]:
        """
        Get all members of an account with user and role details.

        Args:
            account_id: Account ID

        Returns:
            List of members with auth_user_id and role names
        """
        self._get_account(account_id)
        memberships = self.membership_repo.get_account_members(account_id)
        return [self.describe(membership) for membership in memberships]

    def add_member(
        self, account_id: int, user_id: int, role_ids: list[int] | None = None
    ) -> AccountMembership:
        """
        Add a user to an account, optionally with role templates.

        Raises:
            NotFoundException: If account, user or a role template is not found
            ConflictException: If the user is already a member
            ValidationException: If a role template is not account-scoped
        """
        self._get_account(account_id)
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundException("User not found")

        if self.membership_repo.get_membership(user.id, account_id):
            raise ConflictException(f"User {user.auth_user_id} is already a member")

        roles = [self._get_account_role(role_id) for role_id in dict.fromkeys(role_ids or [])]

        membership = AccountMembership(user_id=user.id, account_id=account_id)
        membership.roles = [MembershipRole(role_id=role.id) for role in roles]
        membership = self.membership_repo.create(membership)

        self._invalidate(user.id)
        logger.info(
            "Added user %s to account %s with roles %s",
            user.id,
            account_id,
            [role.name for role in roles],
        )
        return membership

    def remove_member(self, account_id: int, membership_id: int) -> None:
        """
        Remove a membership (and its role links) from an account.

        Raises:
            NotFoundException: If membership not found in this account
        """
        membership = self._get_membership(account_id, membership_id)
        user_id = membership.user_id
        self.membership_repo.delete(membership)
        self._invalidate(user_id)
        logger.info("Removed user %s from account %s", user_id, account_id)

    def assign_role(self, account_id: int, membership_id: int, role_id: int) -> AccountMembership:
        """
        Attach a role template to a membership.

        Raises:
            NotFoundException: If membership or template not found
            ValidationException: If the template is not account-scoped
            ConflictException: If already attached
        """
        membership = self._get_membership(account_id, membership_id)
        role = self._get_account_role(role_id)
        if self.membership_repo.get_role(membership.id, role.id):
            raise ConflictException(f"Role '{role.name}' already assigned to this membership")

        self.membership_repo.add_role(MembershipRole(membership_id=membership.id, role_id=role.id))
        self.db.refresh(membership)
        self._invalidate(membership.user_id)
        logger.info(
            "Assigned role %s to user %s in account %s", role.name, membership.user_id, account_id
        )
        return membership

    def remove_role(self, account_id: int, membership_id: int, role_id: int) -> AccountMembership:
        """
        Detach a role template from a membership.

        Raises:
            NotFoundException: If membership or role link not found
        """
        membership = self._get_membership(account_id, membership_id)
        membership_role = self.membership_repo.get_role(membership.id, role_id)
        if not membership_role:
            raise NotFoundException("Role not assigned to this membership")

        self.membership_repo.remove_role(membership_role)
        self.db.refresh(membership)
        self._invalidate(membership.user_id)
        logger.info(
            "Removed role %s from user %s in account %s", role_id, membership.user_id, account_id
        )
        return membership

    def ensure_membership(self, user: User, account_id: int, role_name: str | None = None) -> AccountMembership:
        """
        Get or create a membership, attaching a named role template if given.

        A missing role template is logged and skipped; the membership is
        still created.
        """
        membership = self.membership_repo.get_membership(user.id, account_id)
        if membership is None:
            membership = self.membership_repo.create(
                AccountMembership(user_id=user.id, account_id=account_id)
            )

        if role_name:
            role = self.role_repo.get_by_name(role_name)
            if role is None:
                logger.error("Default role template '%s' not found", role_name)
            elif not self.membership_repo.get_role(membership.id, role.id):
                self.membership_repo.add_role(
                    MembershipRole(membership_id=membership.id, role_id=role.id)
                )
                self.db.refresh(membership)

        self._invalidate(user.id)
        return membership

    def auto_assign_by_domain(self, user: User, role_name: str | None = None) -> list[int]:
        """
        Add a user to every account whose domains list contains the user's
        email domain.

        Returns:
            IDs of accounts the user was assigned to
        """
        if not user.email or "@" not in user.email:
            return []
        domain = user.email.rsplit("@", 1)[1].strip().lower()
        if not domain:
            return []

        assigned: list[int] = []
        for account in self.account_repo.get_by_domain(domain):
            if domain in account.domain_list:
                self.ensure_membership(user, account.id, role_name)
                assigned.append(account.id)
                logger.info(
                    "Auto-assigned user %s to account %s based on domain %s",
                    user.id,
                    account.name,
                    domain,
                )
        return assigned

    def describe(self, membership: AccountMembership) -> dict:
        """Render a membership with user and role details"""
        user = membership.user or self.user_repo.get_by_id(membership.user_id)
        return {
            "id": membership.id,
            "user_id": membership.user_id,
            "account_id": membership.account_id,
            "auth_user_id": user.auth_user_id if user else "unknown",
            "roles": [
                {"role_id": link.role_id, "role_name": link.role.name}
                for link in membership.roles
            ],
            "created_at": membership.created_at,
        }

    def _get_account(self, account_id: int):
        account = self.account_repo.get_by_id(account_id)
        if not account:
            raise NotFoundException("Account not found")
        return account

    def _get_membership(self, account_id: int, membership_id: int) -> AccountMembership:
        membership = self.membership_repo.get_by_id_and_account(membership_id, account_id)
        if not membership:
            raise NotFoundException("Member not found in this account")
        return membership

    def _get_account_role(self, role_id: int) -> RoleTemplate:
        role = self.role_repo.get_by_id(role_id)
        if not role:
            raise NotFoundException(f"Role template {role_id} not found")
        if role.scope != RoleScope.ACCOUNT:
            raise ValidationException(
                f"Role template '{role.name}' is global; assign it as a system role"
            )
        return role

    def _invalidate(self, user_id: int) -> None:
        if self.cache is not None:
            self.cache.invalidate(user_id)
