import pytest
from datetime import datetime, timedelta, UTC
from servicedesk.models import AccountMembership, AccountUser, User
from servicedesk.models.role import UserRole
from tests.conftest import add_membership, headers_for, make_user


def invite(client, account_id, headers, email="customer@acme.com", **extra):
    body = {"email": email, "name": "Casey Customer", **extra}
    return client.post(f"/api/accounts/{account_id}/account-users", json=body, headers=headers)


class TestInvite:
    def test_invite_returns_token(self, client, admin_headers, account_tree):
        response = invite(
            client,
            account_tree["child"].id,
            admin_headers,
            email="Customer@Acme.com",
            phone="555-0100",
            permissions={"tickets:create": True},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "customer@acme.com"
        assert data["user_id"] is None
        assert data["permissions"] == {"tickets:create": True}
        assert len(data["invitation_token"]) >= 32
        expiry = datetime.fromisoformat(data["invitation_expiry"])
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=UTC)
        assert timedelta(days=6) < expiry - datetime.now(UTC) <= timedelta(days=7)

    def test_duplicate_invite_conflict(self, client, admin_headers, account_tree):
        invite(client, account_tree["child"].id, admin_headers)
        response = invite(client, account_tree["child"].id, admin_headers, email="CUSTOMER@acme.com")
        assert response.status_code == 409

    def test_invalid_email(self, client, admin_headers, account_tree):
        response = invite(client, account_tree["child"].id, admin_headers, email="not-an-email")
        assert response.status_code == 422

    def test_manager_can_invite_in_subtree(self, client, db_session, roles, account_tree):
        manager = make_user(db_session, "manager")
        add_membership(db_session, manager, account_tree["parent"], roles["Account Manager"])

        assert invite(client, account_tree["grandchild"].id, headers_for("manager")).status_code == 201
        assert invite(client, account_tree["other"].id, headers_for("manager")).status_code == 403

    def test_list_account_users(self, client, admin_headers, account_tree):
        invite(client, account_tree["child"].id, admin_headers)
        response = client.get(f"/api/accounts/{account_tree['child'].id}/account-users", headers=admin_headers)
        assert response.status_code == 200
        assert [u["email"] for u in response.json()] == ["customer@acme.com"]
        assert "invitation_token" not in response.json()[0]


class TestAcceptInvitation:
    def test_accept_links_user_and_creates_membership(self, client, db_session, admin_headers, roles, account_tree):
        token = invite(client, account_tree["child"].id, admin_headers).json()["invitation_token"]
        headers = headers_for("customer-1", email="customer@acme.com")

        response = client.post("/api/account-users/accept-invitation", json={"token": token}, headers=headers)

        assert response.status_code == 200
        user = db_session.query(User).filter_by(auth_user_id="customer-1").one()
        assert response.json()["user_id"] == user.id

        membership = db_session.query(AccountMembership).filter_by(user_id=user.id).one()
        assert membership.account_id == account_tree["child"].id
        assert [link.role.name for link in membership.roles] == ["Account User"]

        check = client.post(
            "/api/permissions/check",
            json={"resource": "tickets", "action": "create", "account_id": account_tree["child"].id},
            headers=headers,
        )
        assert check.json() == {"has_permission": True}

    def test_token_is_single_use(self, client, admin_headers, roles, account_tree):
        token = invite(client, account_tree["child"].id, admin_headers).json()["invitation_token"]
        client.post("/api/account-users/accept-invitation", json={"token": token}, headers=headers_for("c1"))

        response = client.post(
            "/api/account-users/accept-invitation", json={"token": token}, headers=headers_for("c2")
        )
        assert response.status_code == 404

    def test_unknown_token(self, client, auth_headers):
        response = client.post(
            "/api/account-users/accept-invitation", json={"token": "nope"}, headers=auth_headers
        )
        assert response.status_code == 404

    def test_expired_invitation(self, client, db_session, admin_headers, roles, account_tree):
        token = invite(client, account_tree["child"].id, admin_headers).json()["invitation_token"]
        account_user = db_session.query(AccountUser).filter_by(invitation_token=token).one()
        account_user.invitation_expiry = datetime.now(UTC) - timedelta(hours=1)
        db_session.commit()

        response = client.post(
            "/api/account-users/accept-invitation", json={"token": token}, headers=headers_for("late")
        )
        assert response.status_code == 400
        assert "expired" in response.json()["detail"]

    def test_user_already_linked_elsewhere(self, client, admin_headers, roles, account_tree):
        first = invite(client, account_tree["child"].id, admin_headers).json()["invitation_token"]
        second = invite(client, account_tree["other"].id, admin_headers).json()["invitation_token"]
        headers = headers_for("customer-1")

        client.post("/api/account-users/accept-invitation", json={"token": first}, headers=headers)
        response = client.post("/api/account-users/accept-invitation", json={"token": second}, headers=headers)
        assert response.status_code == 409

    def test_requires_authentication(self, client):
        response = client.post("/api/account-users/accept-invitation", json={"token": "x"})
        assert response.status_code in (401, 403)


class TestPermissionFlags:
    @pytest.mark.parametrize("flag", ["rockets:launch", "tickets:fly", "tickets:*", "tickets"])
    def test_unregistered_flag_rejected(self, client, db_session, admin_headers, account_tree, flag):
        response = invite(client, account_tree["child"].id, admin_headers, permissions={flag: True})

        assert response.status_code == 400
        assert db_session.query(AccountUser).count() == 0

    def test_flags_apply_in_their_account(self, client, db_session, admin_headers, roles, account_tree):
        child_id = account_tree["child"].id
        token = invite(
            client, child_id, admin_headers, permissions={"reports:export": True, "billing:view": False}
        ).json()["invitation_token"]
        headers = headers_for("customer-1")
        client.post("/api/account-users/accept-invitation", json={"token": token}, headers=headers)

        def check(resource, action, account_id=None, scope=None):
            body = {"resource": resource, "action": action, "account_id": account_id, "scope": scope}
            return client.post("/api/permissions/check", json=body, headers=headers).json()["has_permission"]

        assert check("reports", "export", child_id) is True
        assert check("reports", "export") is True
        assert check("reports", "export", account_tree["other"].id) is False
        assert check("reports", "export", child_id, "global") is False
        assert check("billing", "view", child_id) is False

    def test_flags_listed_in_effective_permissions(self, client, admin_headers, roles, account_tree):
        child_id = account_tree["child"].id
        token = invite(
            client, child_id, admin_headers, permissions={"reports:export": True}
        ).json()["invitation_token"]
        headers = headers_for("customer-1")
        client.post("/api/account-users/accept-invitation", json={"token": token}, headers=headers)

        permissions = client.get("/api/users/me/permissions", headers=headers).json()
        assert {"resource": "reports", "action": "export", "scope": str(child_id)} in permissions

    def test_flags_ignored_while_revoked(self, client, db_session, admin_headers, roles, account_tree):
        child_id = account_tree["child"].id
        token = invite(
            client, child_id, admin_headers, permissions={"reports:export": True}
        ).json()["invitation_token"]
        headers = headers_for("customer-1")
        client.post("/api/account-users/accept-invitation", json={"token": token}, headers=headers)

        account_user = db_session.query(AccountUser).one()
        account_user.is_active = False
        db_session.commit()

        check = client.post(
            "/api/permissions/check",
            json={"resource": "reports", "action": "export", "account_id": child_id},
            headers=headers,
        )
        assert check.json() == {"has_permission": False}


def test_accept_marks_user_as_account_user(client, db_session, admin_headers, roles, account_tree):
    token = invite(client, account_tree["child"].id, admin_headers).json()["invitation_token"]
    client.post("/api/account-users/accept-invitation", json={"token": token}, headers=headers_for("customer-1"))

    user = db_session.query(User).filter_by(auth_user_id="customer-1").one()
    assert user.role == UserRole.ACCOUNT_USER


class TestVerifyInvitation:
    def test_verify_pending(self, client, admin_headers, account_tree):
        token = invite(client, account_tree["child"].id, admin_headers).json()["invitation_token"]

        response = client.get(f"/api/account-users/verify-invitation/{token}")

        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is True
        assert data["email"] == "customer@acme.com"
        assert data["account"] == {
            "id": account_tree["child"].id,
            "name": "Child Co",
            "account_type": "subsidiary",
            "company_name": None,
        }
        assert "invitation_token" not in data

    def test_verify_unknown(self, client):
        assert client.get("/api/account-users/verify-invitation/nope").status_code == 404

    def test_verify_expired(self, client, db_session, admin_headers, account_tree):
        token = invite(client, account_tree["child"].id, admin_headers).json()["invitation_token"]
        account_user = db_session.query(AccountUser).filter_by(invitation_token=token).one()
        account_user.invitation_expiry = datetime.now(UTC) - timedelta(minutes=1)
        db_session.commit()

        response = client.get(f"/api/account-users/verify-invitation/{token}")
        assert response.status_code == 400
        assert "expired" in response.json()["detail"]


class TestResendInvitation:
    def url(self, account_id, account_user_id):
        return f"/api/accounts/{account_id}/account-users/{account_user_id}/resend-invitation"

    def test_resend_replaces_token(self, client, db_session, admin_headers, account_tree):
        child_id = account_tree["child"].id
        created = invite(client, child_id, admin_headers).json()
        account_user = db_session.query(AccountUser).one()
        account_user.invitation_expiry = datetime.now(UTC) - timedelta(days=1)
        db_session.commit()

        response = client.post(self.url(child_id, created["id"]), headers=admin_headers)

        assert response.status_code == 200
        new_token = response.json()["invitation_token"]
        assert new_token != created["invitation_token"]
        assert client.get(f"/api/account-users/verify-invitation/{created['invitation_token']}").status_code == 404
        assert client.get(f"/api/account-users/verify-invitation/{new_token}").status_code == 200

    def test_resend_after_acceptance_rejected(self, client, admin_headers, roles, account_tree):
        child_id = account_tree["child"].id
        created = invite(client, child_id, admin_headers).json()
        client.post(
            "/api/account-users/accept-invitation",
            json={"token": created["invitation_token"]},
            headers=headers_for("customer-1"),
        )

        response = client.post(self.url(child_id, created["id"]), headers=admin_headers)
        assert response.status_code == 400

    def test_resend_in_wrong_account(self, client, admin_headers, account_tree):
        created = invite(client, account_tree["child"].id, admin_headers).json()
        response = client.post(self.url(account_tree["other"].id, created["id"]), headers=admin_headers)
        assert response.status_code == 404

    def test_resend_requires_invite_permission(self, client, db_session, admin_headers, roles, account_tree):
        created = invite(client, account_tree["child"].id, admin_headers).json()
        viewer = make_user(db_session, "viewer")
        add_membership(db_session, viewer, account_tree["parent"], roles["Account Viewer"])

        response = client.post(self.url(account_tree["child"].id, created["id"]), headers=headers_for("viewer"))
        assert response.status_code == 403
