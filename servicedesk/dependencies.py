import logging
from typing import Callable
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from servicedesk.config import settings
from servicedesk.core.cache import PermissionCache
from servicedesk.core.exceptions import ForbiddenException, UnauthorizedException
from servicedesk.core.permissions import PermissionScope
from servicedesk.core.security import decode_jwt
from servicedesk.database import get_db
from servicedesk.models.user import User
from servicedesk.repositories.user_repository import UserRepository
from servicedesk.services.membership_service import MembershipService
from servicedesk.services.permission_service import PermissionService

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_permission_cache(request: Request) -> PermissionCache | None:
    """Decision cache held on the application, if one was configured"""
    return getattr(request.app.state, "permission_cache", None)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> User:
    """
    FastAPI dependency to validate JWT and get/create user.

    Flow:
    1. Extract token from Authorization: Bearer <token>
    2. Validate JWT using shared SECRET_KEY
    3. Extract auth_user_id from 'sub' claim (plus optional email/name)
    4. Get or auto-create User record; new users are attached to accounts
       whose domains match their email
    5. Reject users that have been disabled
    6. Return User object for use in endpoints

    Raises:
        HTTPException 401: If token invalid or expired
        ForbiddenException: If the user has been disabled
    """
    try:
        payload = decode_jwt(credentials.credentials)
    except UnauthorizedException as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_repo = UserRepository(db)
    user, created = user_repo.get_or_create_by_auth_id(
        str(payload["sub"]), email=payload.get("email"), name=payload.get("name")
    )

    if created:
        logger.info("Created user %s for auth id %s", user.id, user.auth_user_id)
        MembershipService(db, cache).auto_assign_by_domain(user, settings.DEFAULT_ACCOUNT_ROLE)

    if not user.is_active:
        raise ForbiddenException("User account is disabled")

    return user


def get_permission_service(
    db: Session = Depends(get_db),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> PermissionService:
    return PermissionService(db, cache)


def require_permission(
    resource: str,
    action: str,
    account_scoped: bool = False,
    scope: PermissionScope | None = None,
) -> Callable[..., User]:
    """
    Build a dependency that admits only users holding ``resource:action``.

    With ``account_scoped`` the ``account_id`` path parameter becomes the
    account context of the check, so membership grants on that account or
    any of its ancestors apply.

    ``scope`` sets the minimum reach of the grant. Administrative routes that
    act on the whole system pass ``PermissionScope.GLOBAL`` so that roles
    held through an account membership do not satisfy them.

    Usage:
        @router.get("/{account_id}")
        async def view(user: User = Depends(require_permission("accounts", "view", True))):
            ...

    Raises:
        ForbiddenException: If the user lacks the permission
    """

    async def checker(
        request: Request,
        user: User = Depends(get_current_user),
        permission_service: PermissionService = Depends(get_permission_service),
    ) -> User:
        account_id = None
        if account_scoped:
            raw = str(request.path_params.get("account_id", ""))
            # non-numeric ids are rejected by path validation afterwards
            account_id = int(raw) if raw.isdigit() else None

        if not permission_service.has_permission(
            user.id, resource, action, account_id=account_id, scope=scope
        ):
            raise ForbiddenException(f"Permission denied: {resource}:{action}")
        return user

    return checker
