import logging
from sqlalchemy.orm import Session

from servicedesk.core.exceptions import NotFoundException, ValidationException
from servicedesk.models.account import Account
from servicedesk.models.role import AccountType
from servicedesk.repositories.account_repository import AccountRepository
from servicedesk.schemas.account_schemas import AccountCreate
from servicedesk.services.account_hierarchy import AccountHierarchy
from servicedesk.services.permission_service import PermissionService

logger = logging.getLogger(__name__)


class AccountService:
    """Service for account business logic"""

    def __init__(self, db: Session, permission_service: PermissionService):
        self.db = db
        self.repo = AccountRepository(db)
        self.hierarchy = AccountHierarchy(db)
        self.permissions = permission_service

    def create_account(self, data: AccountCreate) -> Account:
        """
        Create a new account, optionally below a parent.

        The parent is fixed here; the hierarchy is not edited afterwards.

        Raises:
            NotFoundException: If the parent does not exist
            ValidationException: If a subsidiary has no parent or an individual parent
        """
        parent = None
        if data.parent_id is not None:
            parent = self.repo.get_by_id(data.parent_id)
            if not parent:
                raise NotFoundException("Parent account not found")

        if data.account_type == AccountType.SUBSIDIARY:
            if parent is None:
                raise ValidationException("Subsidiary accounts must have a parent account")
            if parent.account_type == AccountType.INDIVIDUAL:
                raise ValidationException(
                    "Subsidiary accounts cannot have Individual accounts as parents"
                )

        domains = [d.strip().lower() for d in data.domains if d.strip()]
        account = Account(
            name=data.name.strip(),
            account_type=data.account_type,
            parent_id=parent.id if parent else None,
            company_name=data.company_name,
            domains=",".join(domains) if domains else None,
        )
        account = self.repo.create(account)
        logger.info("Created account %s (id=%s, parent=%s)", account.name, account.id, account.parent_id)
        return account

    def get_account(self, account_id: int) -> Account:
        """
        Get account by ID.

        Raises:
            NotFoundException: If account not found
        """
        account = self.repo.get_by_id(account_id)
        if not account:
            raise NotFoundException("Account not found")
        return account

    def list_accounts(self, user_id: int) -> list[Account]:
        """List every account the user may act on, ordered by name"""
        query = self.db.query(Account)
        query = self.permissions.apply_account_filter(query, Account.id, user_id)
        return query.order_by(Account.name, Account.id).all()

    def get_hierarchy(self, account_id: int) -> tuple[Account, list[int], list[Account]]:
        """
        Get an account with its ancestors and descendants.

        Returns:
            Tuple of (account, ancestor IDs nearest first, descendant accounts)
        """
        account = self.get_account(account_id)
        ancestor_ids = self.hierarchy.ancestor_ids(account.id)
        descendants = self.repo.get_by_ids(self.hierarchy.descendant_ids(account.id))
        return account, ancestor_ids, descendants
