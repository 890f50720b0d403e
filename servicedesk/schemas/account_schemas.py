from datetime import datetime
from pydantic import BaseModel, Field
from servicedesk.models.role import AccountType


class AccountCreate(BaseModel):
    """Schema for creating a new account"""

    name: str = Field(..., min_length=1, max_length=255)
    account_type: AccountType = AccountType.INDIVIDUAL
    parent_id: int | None = Field(None, gt=0)
    company_name: str | None = Field(None, max_length=255)
    domains: list[str] = Field(default_factory=list)


class AccountResponse(BaseModel):
    """Schema for account response"""

    id: int
    name: str
    account_type: AccountType
    parent_id: int | None
    company_name: str | None
    domains: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AccountListResponse(BaseModel):
    """Schema for list of accounts"""

    accounts: list[AccountResponse]
    total: int


class AccountHierarchyResponse(BaseModel):
    """An account with every descendant below it"""

    account: AccountResponse
    ancestor_ids: list[int]
    descendants: list[AccountResponse]
