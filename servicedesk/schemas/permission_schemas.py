from datetime import datetime
from pydantic import BaseModel, Field
from servicedesk.core.permissions import PermissionScope


class PermissionCheckRequest(BaseModel):
    """Single permission question asked for the authenticated user"""

    resource: str = Field(..., min_length=1, max_length=50)
    action: str = Field(..., min_length=1, max_length=50)
    account_id: int | None = Field(None, gt=0)
    scope: PermissionScope | None = None


class PermissionCheckResponse(BaseModel):
    has_permission: bool


class PermissionCheckBatchRequest(BaseModel):
    permissions: list[PermissionCheckRequest] = Field(..., max_length=100)


class PermissionDefinitionResponse(BaseModel):
    """Registered permission"""

    name: str
    resource: str
    action: str
    description: str


class EffectivePermissionResponse(BaseModel):
    resource: str
    action: str
    scope: str

    model_config = {"from_attributes": True}


class UserPermissionCreate(BaseModel):
    """Grant a registered permission directly to a user"""

    permission: str = Field(..., description='"resource:action"', min_length=3, max_length=100)
    scope: PermissionScope = Field(default=PermissionScope.OWN)


class UserPermissionResponse(BaseModel):
    id: int
    user_id: int
    permission_name: str
    resource: str
    action: str
    scope: PermissionScope
    created_at: datetime

    model_config = {"from_attributes": True}


class SystemRoleAssign(BaseModel):
    role_id: int = Field(..., gt=0)


class SystemRoleResponse(BaseModel):
    id: int
    user_id: int
    role_id: int
    role_name: str


class PermissionCheckBatchResponse(BaseModel):
    """Decisions keyed by ``resource:action:scope[@account_id]``"""

    results: dict[str, bool]
