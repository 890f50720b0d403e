from datetime import datetime
from pydantic import BaseModel, Field


class MembershipCreate(BaseModel):
    """Add an existing user to an account"""

    user_id: int = Field(..., gt=0)
    role_ids: list[int] = Field(default_factory=list)


class MembershipRoleAssign(BaseModel):
    role_id: int = Field(..., gt=0)


class MembershipRoleResponse(BaseModel):
    role_id: int
    role_name: str


class MembershipResponse(BaseModel):
    """Account member details with assigned role templates"""

    id: int
    user_id: int
    account_id: int
    auth_user_id: str
    roles: list[MembershipRoleResponse]
    created_at: datetime


class MembershipRemoveResponse(BaseModel):
    """Response after removing member"""

    message: str
    removed_membership_id: int
