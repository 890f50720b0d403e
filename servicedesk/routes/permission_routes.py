from fastapi import APIRouter, Depends

from servicedesk.core.permissions import all_permissions
from servicedesk.dependencies import get_current_user, get_permission_service
from servicedesk.models.user import User
from servicedesk.services.permission_service import PermissionCheck, PermissionService
from servicedesk.schemas.permission_schemas import (
    PermissionCheckBatchRequest,
    PermissionCheckBatchResponse,
    PermissionCheckRequest,
    PermissionCheckResponse,
    PermissionDefinitionResponse,
)

router = APIRouter()


@router.get("", response_model=list[PermissionDefinitionResponse])
async def list_permissions(user: User = Depends(get_current_user)):
    """List every registered ``resource:action`` permission"""
    return [
        PermissionDefinitionResponse(
            name=definition.permission.name,
            resource=definition.permission.resource,
            action=definition.permission.action,
            description=definition.description,
        )
        for definition in all_permissions()
    ]


@router.post("/check", response_model=PermissionCheckResponse)
async def check_permission(
    data: PermissionCheckRequest,
    user: User = Depends(get_current_user),
    permission_service: PermissionService = Depends(get_permission_service),
):
    """
    Check a single permission for the authenticated user.

    - **account_id**: evaluate membership grants in this account context
    - **scope**: minimum reach the grant must have (own, account, subsidiary, global)
    """
    allowed = permission_service.has_permission(
        user.id, data.resource, data.action, account_id=data.account_id, scope=data.scope
    )
    return PermissionCheckResponse(has_permission=allowed)


@router.post("/check-batch", response_model=PermissionCheckBatchResponse)
async def check_permissions(
    data: PermissionCheckBatchRequest,
    user: User = Depends(get_current_user),
    permission_service: PermissionService = Depends(get_permission_service),
):
    """Check up to 100 permissions at once against a single grant snapshot"""
    checks = [
        PermissionCheck(item.resource, item.action, item.account_id, item.scope)
        for item in data.permissions
    ]
    return PermissionCheckBatchResponse(results=permission_service.has_permissions(user.id, checks))
