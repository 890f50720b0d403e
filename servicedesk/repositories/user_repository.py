from sqlalchemy.orm import Session
from servicedesk.models.user import User


class UserRepository:
    """Repository for User model operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_or_create_by_auth_id(
        self, auth_user_id: str, email: str | None = None, name: str | None = None
    ) -> tuple[User, bool]:
        """
        Get user by auth_user_id or create if doesn't exist.

        This is called automatically when a user makes their first API
        request with a valid JWT from the auth provider.

        Args:
            auth_user_id: User ID from JWT 'sub' claim
            email: Optional email claim, stored on creation
            name: Optional name claim, stored on creation

        Returns:
            Tuple of (User, created flag)
        """
        user = self.db.query(User).filter(User.auth_user_id == auth_user_id).first()

        if user:
            return user, False

        user = User(auth_user_id=auth_user_id, email=email, name=name)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user, True

    def get_by_id(self, user_id: int) -> User | None:
        """Get user by internal ID"""
        return self.db.query(User).filter(User.id == user_id).first()

    def update(self, user: User) -> User:
        """Update existing user"""
        self.db.commit()
        self.db.refresh(user)
        return user
