import logging
from sqlalchemy.orm import Session

from servicedesk.core.cache import PermissionCache
from servicedesk.core.exceptions import NotFoundException, ValidationException
from servicedesk.models.user import User
from servicedesk.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class UserService:
    """Account status of internal users"""

    def __init__(self, db: Session, cache: PermissionCache | None = None):
        self.db = db
        self.cache = cache
        self.repo = UserRepository(db)

    def set_active(self, user_id: int, is_active: bool, acting_user: User) -> User:
        """
        Enable or disable a user.

        A disabled user is denied every permission check and rejected at
        authentication until enabled again.

        Raises:
            NotFoundException: If user not found
            ValidationException: If a user tries to disable themselves
        """
        user = self.repo.get_by_id(user_id)
        if not user:
            raise NotFoundException("User not found")
        if not is_active and user.id == acting_user.id:
            raise ValidationException("You cannot disable your own account")

        user.is_active = is_active
        user = self.repo.update(user)
        if self.cache is not None:
            self.cache.invalidate(user.id)
        logger.info(
            "User %s %s by user %s",
            user.id,
            "enabled" if is_active else "disabled",
            acting_user.id,
        )
        return user
