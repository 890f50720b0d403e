"""Repository for AccountMembership and MembershipRole model operations."""

from sqlalchemy.orm import Session, selectinload
from servicedesk.models.account_membership import AccountMembership, MembershipRole


class MembershipRepository:
    """Repository for AccountMembership model operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_membership(self, user_id: int, account_id: int) -> AccountMembership | None:
        """
        Get membership for a specific user in a specific account.

        Args:
            user_id: User ID
            account_id: Account ID

        Returns:
            AccountMembership object or None if not found
        """
        return (
            self.db.query(AccountMembership)
            .filter(
                AccountMembership.user_id == user_id,
                AccountMembership.account_id == account_id,
            )
            .first()
        )

    def get_by_id_and_account(
        self, membership_id: int, account_id: int
    ) -> AccountMembership | None:
        """Get membership ensuring it belongs to the account"""
        return (
            self.db.query(AccountMembership)
            .filter(
                AccountMembership.id == membership_id,
                AccountMembership.account_id == account_id,
            )
            .first()
        )

    def get_account_members(self, account_id: int) -> list[AccountMembership]:
        """
        Get all memberships for an account.

        Args:
            account_id: Account ID

        Returns:
            List of AccountMembership objects with roles loaded
        """
        return (
            self.db.query(AccountMembership)
            .options(selectinload(AccountMembership.roles).selectinload(MembershipRole.role))
            .filter(AccountMembership.account_id == account_id)
            .order_by(AccountMembership.id)
            .all()
        )

    def get_user_memberships(self, user_id: int) -> list[AccountMembership]:
        """
        Get memberships for a user, with their role templates loaded.

        Args:
            user_id: User ID

        Returns:
            List of AccountMembership objects for the user
        """
        return (
            self.db.query(AccountMembership)
            .options(selectinload(AccountMembership.roles).selectinload(MembershipRole.role))
            .filter(AccountMembership.user_id == user_id)
            .order_by(AccountMembership.account_id)
            .all()
        )

    def create(self, membership: AccountMembership) -> AccountMembership:
        """
        Create a new account membership.

        Raises:
            IntegrityError: If (user_id, account_id) already exists
        """
        self.db.add(membership)
        self.db.commit()
        self.db.refresh(membership)
        return membership

    def delete(self, membership: AccountMembership) -> None:
        """Remove a user from an account (cascades to membership roles)"""
        self.db.delete(membership)
        self.db.commit()

    def get_role(self, membership_id: int, role_id: int) -> MembershipRole | None:
        """Get a single membership role link"""
        return (
            self.db.query(MembershipRole)
            .filter(
                MembershipRole.membership_id == membership_id,
                MembershipRole.role_id == role_id,
            )
            .first()
        )

    def add_role(self, membership_role: MembershipRole) -> MembershipRole:
        """Attach a role template to a membership"""
        self.db.add(membership_role)
        self.db.commit()
        self.db.refresh(membership_role)
        return membership_role

    def remove_role(self, membership_role: MembershipRole) -> None:
        """Detach a role template from a membership"""
        self.db.delete(membership_role)
        self.db.commit()
