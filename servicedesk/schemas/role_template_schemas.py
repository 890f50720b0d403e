from datetime import datetime
from pydantic import BaseModel, Field
from servicedesk.models.role import RoleScope


class RoleTemplateCreate(BaseModel):
    """Schema for creating a role template"""

    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    permissions: list[str] = Field(default_factory=list)
    inherit_all_permissions: bool = False
    is_system_role: bool = False
    scope: RoleScope = RoleScope.ACCOUNT


class RoleTemplateUpdate(BaseModel):
    """Schema for updating a role template (all fields optional)"""

    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    permissions: list[str] | None = None
    inherit_all_permissions: bool | None = None
    scope: RoleScope | None = None


class RoleTemplateResponse(BaseModel):
    id: int
    name: str
    description: str | None
    permissions: list[str]
    inherit_all_permissions: bool
    is_system_role: bool
    scope: RoleScope
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RoleTemplateListResponse(BaseModel):
    role_templates: list[RoleTemplateResponse]
    total: int
