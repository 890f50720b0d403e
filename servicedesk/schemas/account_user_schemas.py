from datetime import datetime
from pydantic import BaseModel, Field, EmailStr
from servicedesk.models.role import AccountType


class AccountUserInvite(BaseModel):
    """Invite a customer-side user to an account"""

    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=50)
    permissions: dict[str, bool] = Field(default_factory=dict)


class AccountUserResponse(BaseModel):
    id: int
    account_id: int
    user_id: int | None
    email: str
    name: str
    phone: str | None
    is_active: bool
    invitation_expiry: datetime | None
    permissions: dict | None
    created_at: datetime

    model_config = {"from_attributes": True}


class AccountUserInviteResponse(AccountUserResponse):
    """Invitation result; the token is returned once for delivery"""

    invitation_token: str


class InvitationAccept(BaseModel):
    token: str = Field(..., min_length=1, max_length=255)


class InvitationAccountSummary(BaseModel):
    id: int
    name: str
    account_type: AccountType
    company_name: str | None

    model_config = {"from_attributes": True}


class InvitationVerifyResponse(BaseModel):
    """Pending invitation details shown before the invitee signs in"""

    valid: bool = True
    id: int
    email: str
    name: str
    invitation_expiry: datetime | None
    account: InvitationAccountSummary

    model_config = {"from_attributes": True}
