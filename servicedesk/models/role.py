"""Role and scope enums for role-based access control."""

from enum import Enum as PyEnum


class UserRole(str, PyEnum):
    """
    Coarse identity classification of a User.

    - ADMIN - internal administrator
    - EMPLOYEE - internal staff working tickets and time entries
    - ACCOUNT_USER - customer-side user reaching the portal through an AccountUser

    Fine-grained access is never decided from this value alone; it is
    resolved by PermissionService from grants and role templates.
    """

    ADMIN = "admin"
    EMPLOYEE = "employee"
    ACCOUNT_USER = "account_user"


class RoleScope(str, PyEnum):
    """
    Where a role template may be assigned.

    - GLOBAL - assigned directly to a user as a SystemRole
    - ACCOUNT - assigned through an AccountMembership as a MembershipRole
    """

    GLOBAL = "global"
    ACCOUNT = "account"


class AccountType(str, PyEnum):
    """Account type enumeration"""

    INDIVIDUAL = "individual"
    ORGANIZATION = "organization"
    SUBSIDIARY = "subsidiary"
