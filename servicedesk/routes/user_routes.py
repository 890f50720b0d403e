from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from servicedesk.database import get_db
from servicedesk.dependencies import (
    get_current_user,
    get_permission_cache,
    get_permission_service,
    require_permission,
)
from servicedesk.core.cache import PermissionCache
from servicedesk.core.permissions import PermissionScope
from servicedesk.models.role_template import SystemRole
from servicedesk.models.user import User
from servicedesk.services.grant_service import GrantService
from servicedesk.services.user_service import UserService
from servicedesk.services.permission_service import PermissionService
from servicedesk.schemas.permission_schemas import (
    EffectivePermissionResponse,
    SystemRoleAssign,
    SystemRoleResponse,
    UserPermissionCreate,
    UserPermissionResponse,
)
from servicedesk.schemas.user_schemas import UserResponse

router = APIRouter()


def _system_role_response(system_role: SystemRole) -> SystemRoleResponse:
    return SystemRoleResponse(
        id=system_role.id,
        user_id=system_role.user_id,
        role_id=system_role.role_id,
        role_name=system_role.role.name,
    )


@router.get("/me/permissions", response_model=list[EffectivePermissionResponse])
async def get_my_permissions(
    user: User = Depends(get_current_user),
    permission_service: PermissionService = Depends(get_permission_service),
):
    """Effective permissions of the authenticated user"""
    return permission_service.get_effective_permissions(user.id)


@router.get("/{user_id}/effective-permissions", response_model=list[EffectivePermissionResponse])
async def get_effective_permissions(
    user_id: int,
    user: User = Depends(require_permission("users", "view", scope=PermissionScope.GLOBAL)),
    permission_service: PermissionService = Depends(get_permission_service),
):
    """
    Effective permissions of any user.

    Scope is "global" for system role grants, the account ID for membership
    grants, and the grant scope for direct permissions.
    """
    return permission_service.get_effective_permissions(user_id)


@router.get("/{user_id}/permissions", response_model=list[UserPermissionResponse])
async def list_user_permissions(
    user_id: int,
    user: User = Depends(require_permission("permissions", "view", scope=PermissionScope.GLOBAL)),
    db: Session = Depends(get_db),
):
    """List direct permission grants of a user"""
    service = GrantService(db)
    return service.list_permissions(user_id)


@router.post(
    "/{user_id}/permissions",
    response_model=UserPermissionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def grant_user_permission(
    user_id: int,
    data: UserPermissionCreate,
    user: User = Depends(require_permission("permissions", "create", scope=PermissionScope.GLOBAL)),
    db: Session = Depends(get_db),
    cache: PermissionCache | None = Depends(get_permission_cache),
):
    """
    Grant a registered permission directly to a user.

    - Wildcards are not accepted for direct grants
    - Scope defaults to "own"
    """
    service = GrantService(db, cache)
    return service.grant_permission(user_id, data)


@router.delete("/{user_id}/permissions/{permission_id}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_user_permission(
    user_id: int,
    permission_id: int,
    user: User = Depends(require_permission("permissions", "delete", scope=PermissionScope.GLOBAL)),
    db: Session = Depends(get_db),
    cache: PermissionCache | None = Depends(get_permission_cache),
):
    """Revoke a direct permission grant"""
    service = GrantService(db, cache)
    service.revoke_permission(user_id, permission_id)
    return None


@router.get("/{user_id}/system-roles", response_model=list[SystemRoleResponse])
async def list_system_roles(
    user_id: int,
    user: User = Depends(require_permission("users", "view", scope=PermissionScope.GLOBAL)),
    db: Session = Depends(get_db),
):
    """List role templates assigned to a user globally"""
    service = GrantService(db)
    return [_system_role_response(role) for role in service.list_system_roles(user_id)]


@router.post(
    "/{user_id}/system-roles",
    response_model=SystemRoleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def assign_system_role(
    user_id: int,
    data: SystemRoleAssign,
    user: User = Depends(require_permission("users", "manage", scope=PermissionScope.GLOBAL)),
    db: Session = Depends(get_db),
    cache: PermissionCache | None = Depends(get_permission_cache),
):
    """
    Assign a global role template to a user.

    - **Requires users:manage** with global reach
    - Account-scoped templates must be attached through a membership instead
    """
    service = GrantService(db, cache)
    return _system_role_response(service.assign_system_role(user_id, data.role_id))


@router.delete("/{user_id}/system-roles/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_system_role(
    user_id: int,
    role_id: int,
    user: User = Depends(require_permission("users", "manage", scope=PermissionScope.GLOBAL)),
    db: Session = Depends(get_db),
    cache: PermissionCache | None = Depends(get_permission_cache),
):
    """Remove a global role template from a user"""
    service = GrantService(db, cache)
    service.remove_system_role(user_id, role_id)
    return None


@router.post("/{user_id}/disable", response_model=UserResponse)
async def disable_user(
    user_id: int,
    user: User = Depends(require_permission("users", "manage", scope=PermissionScope.GLOBAL)),
    db: Session = Depends(get_db),
    cache: PermissionCache | None = Depends(get_permission_cache),
):
    """
    Disable a user.

    - **Requires users:manage** with global reach
    - Users cannot disable themselves
    """
    service = UserService(db, cache)
    return service.set_active(user_id, False, user)


@router.post("/{user_id}/enable", response_model=UserResponse)
async def enable_user(
    user_id: int,
    user: User = Depends(require_permission("users", "manage", scope=PermissionScope.GLOBAL)),
    db: Session = Depends(get_db),
    cache: PermissionCache | None = Depends(get_permission_cache),
):
    """Re-enable a disabled user"""
    service = UserService(db, cache)
    return service.set_active(user_id, True, user)
