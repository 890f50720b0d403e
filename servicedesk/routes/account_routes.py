from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from servicedesk.core.cache import PermissionCache
from servicedesk.core.exceptions import ForbiddenException
from servicedesk.core.permissions import PermissionScope
from servicedesk.database import get_db
from servicedesk.dependencies import (
    get_current_user,
    get_permission_cache,
    get_permission_service,
    require_permission,
)
from servicedesk.models.user import User
from servicedesk.services.account_service import AccountService
from servicedesk.services.account_user_service import AccountUserService
from servicedesk.services.membership_service import MembershipService
from servicedesk.services.permission_service import PermissionService
from servicedesk.schemas.account_schemas import (
    AccountCreate,
    AccountHierarchyResponse,
    AccountListResponse,
    AccountResponse,
)
from servicedesk.schemas.account_user_schemas import (
    AccountUserInvite,
    AccountUserInviteResponse,
    AccountUserResponse,
)
from servicedesk.schemas.membership_schemas import (
    MembershipCreate,
    MembershipRemoveResponse,
    MembershipResponse,
    MembershipRoleAssign,
)

router = APIRouter()


@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    data: AccountCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    permission_service: PermissionService = Depends(get_permission_service),
):
    """
    Create a new account.

    - **Requires accounts:create**, evaluated in the parent account when one is given
    - Top-level accounts need accounts:create with global reach
    - Subsidiary accounts need a parent that is not an individual account
    """
    scope = PermissionScope.GLOBAL if data.parent_id is None else None
    if not permission_service.has_permission(
        user.id, "accounts", "create", account_id=data.parent_id, scope=scope
    ):
        raise ForbiddenException("Permission denied: accounts:create")
    service = AccountService(db, permission_service)
    return service.create_account(data)


@router.get("", response_model=AccountListResponse)
async def list_accounts(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    permission_service: PermissionService = Depends(get_permission_service),
):
    """
    List accounts the authenticated user can access.

    Members see their accounts plus every descendant; super admins see all.
    """
    service = AccountService(db, permission_service)
    accounts = service.list_accounts(user.id)
    return AccountListResponse(accounts=accounts, total=len(accounts))


@router.get("/{account_id}", response_model=AccountResponse)
async def get_account(
    account_id: int,
    user: User = Depends(require_permission("accounts", "view", account_scoped=True)),
    db: Session = Depends(get_db),
    permission_service: PermissionService = Depends(get_permission_service),
):
    """Get specific account details"""
    service = AccountService(db, permission_service)
    return service.get_account(account_id)


@router.get("/{account_id}/hierarchy", response_model=AccountHierarchyResponse)
async def get_account_hierarchy(
    account_id: int,
    user: User = Depends(require_permission("accounts", "view", account_scoped=True)),
    db: Session = Depends(get_db),
    permission_service: PermissionService = Depends(get_permission_service),
):
    """Get an account with its ancestor IDs and every descendant account"""
    service = AccountService(db, permission_service)
    account, ancestor_ids, descendants = service.get_hierarchy(account_id)
    return AccountHierarchyResponse(
        account=account, ancestor_ids=ancestor_ids, descendants=descendants
    )


@router.get("/{account_id}/members", response_model=list[MembershipResponse])
async def list_members(
    account_id: int,
    user: User = Depends(require_permission("users", "view", account_scoped=True)),
    db: Session = Depends(get_db),
):
    """List direct members of an account with their role templates"""
    service = MembershipService(db)
    return service.get_members(account_id)


@router.post(
    "/{account_id}/members",
    response_model=MembershipResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_member(
    account_id: int,
    data: MembershipCreate,
    user: User = Depends(require_permission("users", "manage", account_scoped=True)),
    db: Session = Depends(get_db),
    cache: PermissionCache | None = Depends(get_permission_cache),
):
    """
    Add an existing user to an account.

    - **Requires users:manage** in the account or an ancestor
    - Role templates must be account-scoped
    """
    service = MembershipService(db, cache)
    membership = service.add_member(account_id, data.user_id, data.role_ids)
    return service.describe(membership)


@router.delete(
    "/{account_id}/members/{membership_id}",
    response_model=MembershipRemoveResponse,
    status_code=status.HTTP_200_OK,
)
async def remove_member(
    account_id: int,
    membership_id: int,
    user: User = Depends(require_permission("users", "manage", account_scoped=True)),
    db: Session = Depends(get_db),
    cache: PermissionCache | None = Depends(get_permission_cache),
):
    """Remove a member (and their membership roles) from an account"""
    service = MembershipService(db, cache)
    service.remove_member(account_id, membership_id)

    return {
        "message": "Member removed successfully",
        "removed_membership_id": membership_id,
    }


@router.post(
    "/{account_id}/members/{membership_id}/roles",
    response_model=MembershipResponse,
    status_code=status.HTTP_201_CREATED,
)
async def assign_member_role(
    account_id: int,
    membership_id: int,
    data: MembershipRoleAssign,
    user: User = Depends(require_permission("users", "manage", account_scoped=True)),
    db: Session = Depends(get_db),
    cache: PermissionCache | None = Depends(get_permission_cache),
):
    """Attach an account-scoped role template to a membership"""
    service = MembershipService(db, cache)
    membership = service.assign_role(account_id, membership_id, data.role_id)
    return service.describe(membership)


@router.delete(
    "/{account_id}/members/{membership_id}/roles/{role_id}",
    response_model=MembershipResponse,
)
async def remove_member_role(
    account_id: int,
    membership_id: int,
    role_id: int,
    user: User = Depends(require_permission("users", "manage", account_scoped=True)),
    db: Session = Depends(get_db),
    cache: PermissionCache | None = Depends(get_permission_cache),
):
    """Detach a role template from a membership"""
    service = MembershipService(db, cache)
    membership = service.remove_role(account_id, membership_id, role_id)
    return service.describe(membership)


@router.get("/{account_id}/account-users", response_model=list[AccountUserResponse])
async def list_account_users(
    account_id: int,
    user: User = Depends(require_permission("users", "view", account_scoped=True)),
    db: Session = Depends(get_db),
):
    """List customer-side users invited to an account"""
    service = AccountUserService(db)
    return service.list_account_users(account_id)


@router.post(
    "/{account_id}/account-users",
    response_model=AccountUserInviteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def invite_account_user(
    account_id: int,
    data: AccountUserInvite,
    user: User = Depends(require_permission("users", "invite", account_scoped=True)),
    db: Session = Depends(get_db),
):
    """
    Invite a customer-side user to an account.

    The invitation token is returned once; delivering it is up to the caller.
    """
    service = AccountUserService(db)
    return service.invite(account_id, data)


@router.post(
    "/{account_id}/account-users/{account_user_id}/resend-invitation",
    response_model=AccountUserInviteResponse,
)
async def resend_invitation(
    account_id: int,
    account_user_id: int,
    user: User = Depends(require_permission("users", "invite", account_scoped=True)),
    db: Session = Depends(get_db),
):
    """
    Reissue an invitation that has not been accepted yet.

    A new token and expiry replace the old ones, so earlier links stop working.
    """
    service = AccountUserService(db)
    return service.resend_invitation(account_id, account_user_id)
