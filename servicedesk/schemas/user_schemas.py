from datetime import datetime
from pydantic import BaseModel
from servicedesk.models.role import UserRole


class UserResponse(BaseModel):
    """Internal user with account status"""

    id: int
    auth_user_id: str
    email: str | None
    name: str | None
    role: UserRole
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
