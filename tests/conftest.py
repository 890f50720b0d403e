import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./servicedesk_test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-jwt-signing")

import pytest
from datetime import datetime, timedelta, UTC
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from jose import jwt

from servicedesk.database import get_db
from servicedesk.config import settings
# Import all model classes to ensure they're registered with SQLAlchemy
from servicedesk.models import (
    Base,
    User,
    UserPermission,
    RoleTemplate,
    SystemRole,
    Account,
    AccountMembership,
    MembershipRole,
)
from servicedesk.core.permissions import PermissionScope
from servicedesk.models.role import AccountType, RoleScope
from servicedesk.seed import seed_role_templates
from servicedesk.services.permission_service import PermissionService
# Import FastAPI app AFTER model imports
from servicedesk.main import app

# Test database (SQLite in-memory for speed)
# Use StaticPool to ensure all connections share the same in-memory database
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """FastAPI test client with test database"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def create_test_token(
    user_id: str = "test-user-123",
    expired: bool = False,
    email: str | None = None,
    name: str | None = None,
) -> str:
    """
    Generate valid JWT token for testing.

    Args:
        user_id: User ID to embed in 'sub' claim
        expired: If True, create expired token
        email: Optional 'email' claim
        name: Optional 'name' claim

    Returns:
        Encoded JWT token
    """
    if expired:
        exp = datetime.now(UTC) - timedelta(minutes=5)
    else:
        exp = datetime.now(UTC) + timedelta(minutes=15)

    payload = {"sub": user_id, "exp": exp, "iat": datetime.now(UTC)}
    if email is not None:
        payload["email"] = email
    if name is not None:
        payload["name"] = name

    token = jwt.encode(payload, settings.SECRET_KEY, algorithm="HS256")
    return token


def headers_for(user_id: str, **claims) -> dict:
    """Authorization headers for an arbitrary auth user id"""
    return {"Authorization": f"Bearer {create_test_token(user_id=user_id, **claims)}"}


# ---------------------------------------------------------------------------
# Row builders
# ---------------------------------------------------------------------------


def make_user(db, auth_user_id: str, email: str | None = None, is_active: bool = True) -> User:
    user = User(auth_user_id=auth_user_id, email=email, is_active=is_active)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_account(
    db,
    name: str,
    parent: Account | None = None,
    account_type: AccountType = AccountType.ORGANIZATION,
    domains: str | None = None,
) -> Account:
    account = Account(
        name=name,
        account_type=account_type,
        parent_id=parent.id if parent else None,
        domains=domains,
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def make_role(db, name: str, permissions: list[str], inherit_all: bool = False, scope: str = "account") -> RoleTemplate:
    role = RoleTemplate(
        name=name,
        permissions=permissions,
        inherit_all_permissions=inherit_all,
        scope=RoleScope(scope),
    )
    db.add(role)
    db.commit()
    db.refresh(role)
    return role


def add_membership(db, user: User, account: Account, *roles: RoleTemplate) -> AccountMembership:
    membership = AccountMembership(user_id=user.id, account_id=account.id)
    membership.roles = [MembershipRole(role_id=role.id) for role in roles]
    db.add(membership)
    db.commit()
    db.refresh(membership)
    return membership


def assign_system_role(db, user: User, role: RoleTemplate) -> SystemRole:
    system_role = SystemRole(user_id=user.id, role_id=role.id)
    db.add(system_role)
    db.commit()
    return system_role


def grant(db, user: User, permission: str, scope: PermissionScope = PermissionScope.OWN) -> UserPermission:
    resource, action = permission.split(":")
    row = UserPermission(
        user_id=user.id,
        permission_name=permission,
        resource=resource,
        action=action,
        scope=scope,
    )
    db.add(row)
    db.commit()
    return row


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def roles(db_session) -> dict[str, RoleTemplate]:
    """Default role templates keyed by name"""
    seed_role_templates(db_session)
    return {role.name: role for role in db_session.query(RoleTemplate).all()}


@pytest.fixture
def permission_service(db_session) -> PermissionService:
    return PermissionService(db_session)


@pytest.fixture
def test_user(db_session) -> User:
    """User matching the default token's 'sub' claim"""
    return make_user(db_session, "test-user-123", email="test@example.com")


@pytest.fixture
def super_admin(db_session, roles) -> User:
    """User holding the Super Admin system role"""
    user = make_user(db_session, "admin-user", email="admin@example.com")
    assign_system_role(db_session, user, roles["Super Admin"])
    return user


@pytest.fixture
def account_tree(db_session) -> dict[str, Account]:
    """
    Three-level hierarchy plus an unrelated account:

        parent
        └── child
            └── grandchild
        other
    """
    parent = make_account(db_session, "Parent Org")
    child = make_account(db_session, "Child Co", parent=parent, account_type=AccountType.SUBSIDIARY)
    grandchild = make_account(db_session, "Grandchild Co", parent=child, account_type=AccountType.SUBSIDIARY)
    other = make_account(db_session, "Other Org")
    return {"parent": parent, "child": child, "grandchild": grandchild, "other": other}


@pytest.fixture
def mock_jwt_token():
    """Generate valid JWT token"""
    return create_test_token()


@pytest.fixture
def auth_headers(mock_jwt_token):
    """Authorization headers for authenticated requests"""
    return {"Authorization": f"Bearer {mock_jwt_token}"}


@pytest.fixture
def admin_headers(super_admin):
    """Authorization headers for the super admin"""
    return headers_for(super_admin.auth_user_id)
