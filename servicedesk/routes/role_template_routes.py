from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from servicedesk.core.cache import PermissionCache
from servicedesk.core.permissions import PermissionScope
from servicedesk.database import get_db
from servicedesk.dependencies import get_permission_cache, require_permission
from servicedesk.models.user import User
from servicedesk.services.role_template_service import RoleTemplateService
from servicedesk.schemas.role_template_schemas import (
    RoleTemplateCreate,
    RoleTemplateListResponse,
    RoleTemplateResponse,
    RoleTemplateUpdate,
)

router = APIRouter()


@router.get("", response_model=RoleTemplateListResponse)
async def list_role_templates(
    user: User = Depends(require_permission("role-templates", "view", scope=PermissionScope.GLOBAL)),
    db: Session = Depends(get_db),
):
    """List role templates (super-admin roles first, then system roles, then by name)"""
    service = RoleTemplateService(db)
    templates = service.list_templates()
    return RoleTemplateListResponse(role_templates=templates, total=len(templates))


@router.post("", response_model=RoleTemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_role_template(
    data: RoleTemplateCreate,
    user: User = Depends(require_permission("role-templates", "create", scope=PermissionScope.GLOBAL)),
    db: Session = Depends(get_db),
):
    """
    Create a role template.

    - Permissions must be registered ``resource:action`` strings
    - ``resource:*`` and ``*:*`` wildcards are accepted
    """
    service = RoleTemplateService(db)
    return service.create_template(data)


@router.get("/{role_id}", response_model=RoleTemplateResponse)
async def get_role_template(
    role_id: int,
    user: User = Depends(require_permission("role-templates", "view", scope=PermissionScope.GLOBAL)),
    db: Session = Depends(get_db),
):
    service = RoleTemplateService(db)
    return service.get_template(role_id)


@router.patch("/{role_id}", response_model=RoleTemplateResponse)
async def update_role_template(
    role_id: int,
    data: RoleTemplateUpdate,
    user: User = Depends(require_permission("role-templates", "update", scope=PermissionScope.GLOBAL)),
    db: Session = Depends(get_db),
    cache: PermissionCache | None = Depends(get_permission_cache),
):
    """Update a role template; changes apply to every holder immediately"""
    service = RoleTemplateService(db, cache)
    return service.update_template(role_id, data)


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role_template(
    role_id: int,
    user: User = Depends(require_permission("role-templates", "delete", scope=PermissionScope.GLOBAL)),
    db: Session = Depends(get_db),
):
    """Delete a role template that is no longer assigned anywhere"""
    service = RoleTemplateService(db)
    service.delete_template(role_id)
    return None
