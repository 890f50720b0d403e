from sqlalchemy.orm import Session
from servicedesk.models.account_user import AccountUser


class AccountUserRepository:
    """Repository for AccountUser model operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_account(self, account_id: int) -> list[AccountUser]:
        """Get all portal users of an account"""
        return (
            self.db.query(AccountUser)
            .filter(AccountUser.account_id == account_id)
            .order_by(AccountUser.name, AccountUser.id)
            .all()
        )

    def get_by_email_and_account(self, email: str, account_id: int) -> AccountUser | None:
        """Get account user by email within one account (case-insensitive)"""
        return (
            self.db.query(AccountUser)
            .filter(
                AccountUser.account_id == account_id,
                AccountUser.email.ilike(email),
            )
            .first()
        )

    def get_by_token(self, token: str) -> AccountUser | None:
        """Get account user by invitation token"""
        return (
            self.db.query(AccountUser).filter(AccountUser.invitation_token == token).first()
        )

    def get_by_id(self, account_user_id: int) -> AccountUser | None:
        """Get account user by ID"""
        return self.db.query(AccountUser).filter(AccountUser.id == account_user_id).first()

    def get_by_user(self, user_id: int) -> AccountUser | None:
        """Get the account user linked to a User"""
        return self.db.query(AccountUser).filter(AccountUser.user_id == user_id).first()

    def create(self, account_user: AccountUser) -> AccountUser:
        """Create new account user"""
        self.db.add(account_user)
        self.db.commit()
        self.db.refresh(account_user)
        return account_user

    def update(self, account_user: AccountUser) -> AccountUser:
        """Update existing account user"""
        self.db.commit()
        self.db.refresh(account_user)
        return account_user
