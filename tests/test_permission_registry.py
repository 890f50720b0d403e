import pytest
from servicedesk.core.exceptions import ValidationException
from servicedesk.core.permissions import (
    DEFAULT_ROLE_TEMPLATES,
    Permission,
    PermissionScope,
    all_permissions,
    expand,
    from_stored,
    is_registered,
    validate_permission,
)


class TestPermissionParsing:
    def test_parse_valid_permission(self):
        permission = Permission.parse("time-entries:approve")
        assert permission.resource == "time-entries"
        assert permission.action == "approve"
        assert permission.name == "time-entries:approve"
        assert not permission.is_wildcard

    @pytest.mark.parametrize("name", ["tickets", "tickets:", ":view", "Tickets:View", "a:b:c", ""])
    def test_parse_rejects_malformed(self, name):
        with pytest.raises(ValidationException):
            Permission.parse(name)

    def test_wildcards_parse(self):
        assert Permission.parse("tickets:*").is_wildcard
        assert Permission.parse("*:*").is_wildcard

    def test_from_stored_is_lenient(self):
        assert from_stored("tickets:*") == Permission("tickets", "*")
        assert from_stored("Tickets:View") is None
        assert from_stored("") is None


class TestMatching:
    def test_exact_match(self):
        assert Permission("tickets", "view").matches(Permission("tickets", "view"))
        assert not Permission("tickets", "view").matches(Permission("tickets", "create"))
        assert not Permission("tickets", "view").matches(Permission("reports", "view"))

    def test_resource_wildcard_matches_every_action_of_resource(self):
        wildcard = Permission("tickets", "*")
        assert wildcard.matches(Permission("tickets", "assign"))
        assert not wildcard.matches(Permission("billing", "view"))

    def test_global_wildcard_matches_everything(self):
        wildcard = Permission("*", "*")
        assert all(wildcard.matches(d.permission) for d in all_permissions())

    def test_star_action_form_matches_nothing(self):
        assert not Permission("*", "view").matches(Permission("tickets", "view"))

    def test_matching_is_not_symmetric(self):
        assert not Permission("tickets", "view").matches(Permission("tickets", "*"))


class TestRegistry:
    def test_registry_has_no_duplicates(self):
        names = [d.permission.name for d in all_permissions()]
        assert len(names) == len(set(names))

    def test_registry_covers_admin_surface(self):
        names = {d.permission.name for d in all_permissions()}
        for required in [
            "accounts:view",
            "accounts:create",
            "users:manage",
            "users:invite",
            "role-templates:create",
            "permissions:create",
        ]:
            assert required in names

    def test_is_registered(self):
        assert is_registered(Permission("tickets", "view"))
        assert is_registered(Permission("tickets", "*"))
        assert is_registered(Permission("*", "*"))
        assert not is_registered(Permission("tickets", "fly"))
        assert not is_registered(Permission("rockets", "view"))

    def test_star_action_form_not_supported(self):
        """"*:view" is not a supported wildcard form"""
        assert not is_registered(Permission("*", "view"))

    def test_expand_resource_wildcard(self):
        expanded = {p.name for p in expand(Permission("reports", "*"))}
        assert expanded == {"reports:view", "reports:export"}

    def test_expand_global_wildcard_is_whole_registry(self):
        assert len(expand(Permission("*", "*"))) == len(all_permissions())

    def test_expand_unknown_is_empty(self):
        assert expand(Permission("tickets", "fly")) == []


class TestValidatePermission:
    def test_valid(self):
        assert validate_permission("billing:view") == Permission("billing", "view")

    def test_unknown_rejected(self):
        with pytest.raises(ValidationException, match="Unknown permission"):
            validate_permission("billing:fly")

    def test_wildcard_rejected_when_disallowed(self):
        with pytest.raises(ValidationException, match="Wildcard"):
            validate_permission("billing:*", allow_wildcard=False)


class TestScopes:
    def test_scope_ordering(self):
        ordered = [PermissionScope.OWN, PermissionScope.ACCOUNT, PermissionScope.SUBSIDIARY, PermissionScope.GLOBAL]
        assert [s.rank for s in ordered] == sorted(s.rank for s in ordered)

    def test_global_covers_everything(self):
        for scope in PermissionScope:
            assert PermissionScope.GLOBAL.covers(scope)

    def test_own_covers_only_own(self):
        assert PermissionScope.OWN.covers(PermissionScope.OWN)
        assert not PermissionScope.OWN.covers(PermissionScope.ACCOUNT)
        assert not PermissionScope.OWN.covers(PermissionScope.GLOBAL)

    def test_unscoped_check_accepts_any_grant(self):
        assert PermissionScope.OWN.covers(None)


def test_default_role_templates_are_valid():
    """Every seeded template only references registered permissions"""
    names = [t["name"] for t in DEFAULT_ROLE_TEMPLATES]
    assert len(names) == len(set(names))
    for template in DEFAULT_ROLE_TEMPLATES:
        for name in template["permissions"]:
            validate_permission(name)
    super_admins = [t for t in DEFAULT_ROLE_TEMPLATES if t["inherit_all_permissions"]]
    assert [t["name"] for t in super_admins] == ["Super Admin"]
