from servicedesk.models.base import Base
from servicedesk.models.user import User
from servicedesk.models.user_permission import UserPermission
from servicedesk.models.role_template import RoleTemplate, SystemRole
from servicedesk.models.account import Account
from servicedesk.models.account_membership import AccountMembership, MembershipRole
from servicedesk.models.account_user import AccountUser

__all__ = [
    "Base",
    "User",
    "UserPermission",
    "RoleTemplate",
    "SystemRole",
    "Account",
    "AccountMembership",
    "MembershipRole",
    "AccountUser",
]
