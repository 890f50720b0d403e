from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from servicedesk.core.cache import PermissionCache
from servicedesk.database import get_db
from servicedesk.dependencies import get_current_user, get_permission_cache
from servicedesk.models.user import User
from servicedesk.services.account_user_service import AccountUserService
from servicedesk.schemas.account_user_schemas import (
    AccountUserResponse,
    InvitationAccept,
    InvitationVerifyResponse,
)

router = APIRouter()


@router.get("/verify-invitation/{token}", response_model=InvitationVerifyResponse)
async def verify_invitation(token: str, db: Session = Depends(get_db)):
    """
    Check an invitation token before signing in.

    No authentication is required; the invitee has no session yet.
    Unknown tokens return 404, expired or used ones 400.
    """
    service = AccountUserService(db)
    return service.verify_invitation(token)


@router.post("/accept-invitation", response_model=AccountUserResponse)
async def accept_invitation(
    data: InvitationAccept,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: PermissionCache | None = Depends(get_permission_cache),
):
    """
    Accept an account invitation as the authenticated user.

    Links the user to the invitation, creates the account membership and
    attaches the default account role template.
    """
    service = AccountUserService(db, cache)
    return service.accept_invitation(data.token, user)
