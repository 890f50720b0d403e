from sqlalchemy.orm import Session
from servicedesk.models.account import Account


class AccountRepository:
    """Repository for Account model operations and hierarchy edges"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, account_id: int) -> Account | None:
        """Get account by ID"""
        return self.db.query(Account).filter(Account.id == account_id).first()

    def get_by_ids(self, account_ids: list[int]) -> list[Account]:
        """Get accounts by IDs, ordered by name"""
        if not account_ids:
            return []
        return (
            self.db.query(Account)
            .filter(Account.id.in_(account_ids))
            .order_by(Account.name, Account.id)
            .all()
        )

    def get_all_ids(self) -> list[int]:
        """Get every account ID in the system"""
        return [row[0] for row in self.db.query(Account.id).order_by(Account.id).all()]

    def get_parent_id(self, account_id: int) -> int | None:
        """Get the parent of an account (None for roots and unknown IDs)"""
        row = self.db.query(Account.parent_id).filter(Account.id == account_id).first()
        return row[0] if row else None

    def get_child_ids(self, parent_ids: list[int]) -> list[tuple[int, int]]:
        """
        Get direct children of a set of accounts.

        Args:
            parent_ids: Parent account IDs (one BFS frontier)

        Returns:
            List of (child_id, parent_id) pairs
        """
        if not parent_ids:
            return []
        rows = (
            self.db.query(Account.id, Account.parent_id)
            .filter(Account.parent_id.in_(parent_ids))
            .order_by(Account.id)
            .all()
        )
        return [(row[0], row[1]) for row in rows]

    def get_by_domain(self, domain: str) -> list[Account]:
        """
        Get accounts whose domains column mentions a domain.

        The LIKE match is coarse; callers confirm the exact match via
        ``Account.domain_list``.
        """
        return self.db.query(Account).filter(Account.domains.ilike(f"%{domain}%")).all()

    def create(self, account: Account) -> Account:
        """Create new account"""
        self.db.add(account)
        self.db.commit()
        self.db.refresh(account)
        return account
