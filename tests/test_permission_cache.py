from servicedesk.core.cache import PermissionCache
from servicedesk.core.permissions import PermissionScope
from servicedesk.schemas.permission_schemas import UserPermissionCreate
from servicedesk.services.grant_service import GrantService
from servicedesk.services.membership_service import MembershipService
from servicedesk.services.permission_service import PermissionService
from servicedesk.services.user_service import UserService
from tests.conftest import grant, make_role, make_user


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestPermissionCache:
    def test_disabled_with_zero_ttl(self):
        cache = PermissionCache(ttl_seconds=0)
        cache.set(1, "snapshot")
        assert not cache.enabled
        assert cache.get(1) is None
        assert len(cache) == 0

    def test_entries_expire(self):
        clock = FakeClock()
        cache = PermissionCache(ttl_seconds=30, clock=clock)
        cache.set(1, "snapshot")
        assert cache.get(1) == "snapshot"

        clock.now += 31
        assert cache.get(1) is None
        assert len(cache) == 0

    def test_invalidate_and_clear(self):
        cache = PermissionCache(ttl_seconds=30)
        cache.set(1, "a")
        cache.set(2, "b")

        cache.invalidate(1)
        assert cache.get(1) is None
        assert cache.get(2) == "b"

        cache.invalidate(42)  # unknown keys are ignored
        cache.clear()
        assert len(cache) == 0


class TestCachedEvaluation:
    def test_stale_without_invalidation(self, db_session):
        """A cached snapshot is reused until someone invalidates it"""
        cache = PermissionCache(ttl_seconds=300)
        service = PermissionService(db_session, cache)
        user = make_user(db_session, "u")

        assert service.has_permission(user.id, "billing", "view") is False
        grant(db_session, user, "billing:view")
        assert service.has_permission(user.id, "billing", "view") is False

        cache.invalidate(user.id)
        assert service.has_permission(user.id, "billing", "view") is True

    def test_grant_service_invalidates(self, db_session):
        cache = PermissionCache(ttl_seconds=300)
        service = PermissionService(db_session, cache)
        user = make_user(db_session, "u")

        assert service.has_permission(user.id, "billing", "view") is False
        GrantService(db_session, cache).grant_permission(
            user.id, UserPermissionCreate(permission="billing:view", scope=PermissionScope.GLOBAL)
        )
        assert service.has_permission(user.id, "billing", "view") is True

    def test_membership_service_invalidates(self, db_session, account_tree):
        cache = PermissionCache(ttl_seconds=300)
        service = PermissionService(db_session, cache)
        user = make_user(db_session, "u")
        role = make_role(db_session, "Viewer", ["reports:view"])
        account_id = account_tree["parent"].id

        assert service.get_accessible_account_ids(user.id) == []
        membership = MembershipService(db_session, cache).add_member(account_id, user.id, [role.id])
        assert service.has_permission(user.id, "reports", "view", account_id) is True

        MembershipService(db_session, cache).remove_member(account_id, membership.id)
        assert service.has_permission(user.id, "reports", "view", account_id) is False

    def test_user_service_invalidates(self, db_session, super_admin):
        cache = PermissionCache(ttl_seconds=300)
        service = PermissionService(db_session, cache)
        user = make_user(db_session, "u")
        grant(db_session, user, "billing:view")

        assert service.has_permission(user.id, "billing", "view") is True
        UserService(db_session, cache).set_active(user.id, False, super_admin)
        assert service.has_permission(user.id, "billing", "view") is False
