import pytest
from servicedesk.models import RoleTemplate
from tests.conftest import add_membership, headers_for, make_user


class TestListRoleTemplates:
    def test_list_orders_super_admin_first(self, client, admin_headers, roles):
        response = client.get("/api/role-templates", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == len(roles)
        assert data["role_templates"][0]["name"] == "Super Admin"
        assert data["role_templates"][0]["inherit_all_permissions"] is True

    def test_list_requires_permission(self, client, auth_headers, roles):
        response = client.get("/api/role-templates", headers=auth_headers)
        assert response.status_code == 403
        assert "role-templates:view" in response.json()["detail"]


class TestCreateRoleTemplate:
    def test_create(self, client, admin_headers):
        response = client.post(
            "/api/role-templates",
            json={
                "name": "  Dispatcher ",
                "description": "Routes incoming tickets",
                "permissions": ["tickets:view", "tickets:assign", "tickets:view"],
            },
            headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Dispatcher"
        assert data["permissions"] == ["tickets:view", "tickets:assign"]
        assert data["scope"] == "account"
        assert data["inherit_all_permissions"] is False

    def test_wildcards_accepted(self, client, admin_headers):
        response = client.post(
            "/api/role-templates",
            json={"name": "Ticket Lead", "permissions": ["tickets:*"]},
            headers=admin_headers,
        )
        assert response.status_code == 201

    @pytest.mark.parametrize("permission", ["tickets:fly", "rockets:view", "tickets", "*:view"])
    def test_unregistered_permission_rejected(self, client, admin_headers, permission):
        response = client.post(
            "/api/role-templates",
            json={"name": "Broken", "permissions": [permission]},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_duplicate_name_conflict(self, client, admin_headers, roles):
        response = client.post(
            "/api/role-templates",
            json={"name": "Employee", "permissions": []},
            headers=admin_headers,
        )
        assert response.status_code == 409
        assert response.json()["detail"] == "Role name already exists"

    def test_name_too_long(self, client, admin_headers):
        response = client.post(
            "/api/role-templates",
            json={"name": "x" * 101, "permissions": []},
            headers=admin_headers,
        )
        assert response.status_code == 422


class TestUpdateRoleTemplate:
    def test_update_permissions(self, client, admin_headers, roles):
        role = roles["Account Viewer"]
        response = client.patch(
            f"/api/role-templates/{role.id}",
            json={"permissions": ["reports:view"]},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["permissions"] == ["reports:view"]
        assert response.json()["name"] == "Account Viewer"

    def test_update_changes_decisions(self, client, db_session, admin_headers, roles, account_tree):
        user = make_user(db_session, "viewer")
        add_membership(db_session, user, account_tree["parent"], roles["Account Viewer"])
        headers = headers_for("viewer")
        url = f"/api/accounts/{account_tree['parent'].id}/members"

        assert client.get(url, headers=headers).status_code == 403

        client.patch(
            f"/api/role-templates/{roles['Account Viewer'].id}",
            json={"permissions": ["users:view"]},
            headers=admin_headers,
        )
        assert client.get(url, headers=headers).status_code == 200

    def test_rename_conflict(self, client, admin_headers, roles):
        response = client.patch(
            f"/api/role-templates/{roles['Employee'].id}",
            json={"name": "Super Admin"},
            headers=admin_headers,
        )
        assert response.status_code == 409

    def test_update_not_found(self, client, admin_headers):
        response = client.patch("/api/role-templates/9999", json={"name": "X"}, headers=admin_headers)
        assert response.status_code == 404


class TestDeleteRoleTemplate:
    def test_delete_unused(self, client, db_session, admin_headers):
        created = client.post(
            "/api/role-templates", json={"name": "Temp", "permissions": []}, headers=admin_headers
        ).json()

        response = client.delete(f"/api/role-templates/{created['id']}", headers=admin_headers)

        assert response.status_code == 204
        assert db_session.query(RoleTemplate).filter_by(name="Temp").first() is None

    def test_delete_assigned_refused(self, client, admin_headers, roles):
        # Super Admin is held by the admin making the request
        response = client.delete(f"/api/role-templates/{roles['Super Admin'].id}", headers=admin_headers)
        assert response.status_code == 409
        assert "remove the assignments first" in response.json()["detail"]

    def test_get_single(self, client, admin_headers, roles):
        response = client.get(f"/api/role-templates/{roles['Employee'].id}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["scope"] == "global"


class TestTemplateScope:
    def test_scope_change_refused_while_assigned(self, client, db_session, admin_headers, roles):
        # Super Admin is assigned to the admin as a system role
        role = roles["Super Admin"]
        response = client.patch(
            f"/api/role-templates/{role.id}", json={"scope": "account"}, headers=admin_headers
        )

        assert response.status_code == 409
        db_session.refresh(role)
        assert role.scope.value == "global"

    def test_scope_change_refused_for_membership_role(self, client, db_session, admin_headers, roles, account_tree):
        user = make_user(db_session, "member")
        add_membership(db_session, user, account_tree["child"], roles["Account Viewer"])

        response = client.patch(
            f"/api/role-templates/{roles['Account Viewer'].id}",
            json={"scope": "global", "description": "Changed"},
            headers=admin_headers,
        )

        assert response.status_code == 409
        db_session.refresh(roles["Account Viewer"])
        assert roles["Account Viewer"].description != "Changed"

    def test_scope_change_allowed_when_unassigned(self, client, admin_headers, roles):
        response = client.patch(
            f"/api/role-templates/{roles['Employee'].id}", json={"scope": "account"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["scope"] == "account"

    def test_same_scope_is_not_a_change(self, client, admin_headers, roles):
        response = client.patch(
            f"/api/role-templates/{roles['Super Admin'].id}",
            json={"scope": "global", "description": "Everything"},
            headers=admin_headers,
        )
        assert response.status_code == 200
