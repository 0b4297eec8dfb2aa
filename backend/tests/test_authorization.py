"""
Authentication and authorization tests.

Verifies:
- Token login, logout and /me
- 401 without a valid token, 403 without any of the required permissions
- Admin-only user/role management
"""

import pytest

from tablepos.errors import ConflictError
from tablepos.models import Permission, SessionToken
from tablepos.permissions import has_any, permission_set, DEFAULT_ROLE_PERMISSIONS
from tablepos.services import auth_service, permission_service, session_service
from tablepos.services.auth_service import PasswordValidationError

PASSWORD = "Password123!"


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def token_for(client, username: str, password: str = PASSWORD) -> str | None:
    resp = client.post("/api/auth/login", json={"username": username, "password": password})
    return resp.json["token"] if resp.status_code == 200 else None


class TestPermissionHelpers:

    def test_has_any(self):
        granted = permission_set({"MANAGE_SALES", "VIEW_DASHBOARD"})
        assert has_any(permission_set({"MANAGE_SALES", "MANAGE_USERS"}), granted)
        assert not has_any(permission_set({"MANAGE_USERS"}), granted)
        assert not has_any(permission_set(()), granted)

    def test_default_roles_are_seeded(self, db_session, setup_roles):
        for role_name, codes in DEFAULT_ROLE_PERMISSIONS.items():
            role = auth_service.get_role_by_name(role_name)
            assert permission_service.get_role_permissions(role.id) == frozenset(codes)

    def test_permission_seed_is_idempotent(self, db_session, setup_roles):
        count = db_session.query(Permission).count()
        assert permission_service.initialize_permissions() == 0
        assert permission_service.assign_default_role_permissions() == 0
        assert db_session.query(Permission).count() == count


class TestLogin:

    def test_login_me_logout(self, client, cashier_user):
        resp = client.post("/api/auth/login", json={"username": "cashier", "password": PASSWORD})
        assert resp.status_code == 200
        assert resp.json["user"]["role"] == "cashier"
        assert "MANAGE_SALES" in resp.json["permissions"]
        assert resp.json["expires_at"].endswith("Z")
        token = resp.json["token"]

        resp = client.get("/api/auth/me", headers=bearer(token))
        assert resp.status_code == 200
        assert resp.json["user"]["username"] == "cashier"

        resp = client.post("/api/auth/logout", headers=bearer(token))
        assert resp.status_code == 200

        resp = client.get("/api/auth/me", headers=bearer(token))
        assert resp.status_code == 401

    def test_token_stored_hashed(self, client, db_session, cashier_user):
        token = token_for(client, "cashier")
        record = db_session.query(SessionToken).one()
        assert record.token_hash == session_service.hash_token(token)
        assert record.token_hash != token

    @pytest.mark.parametrize("body", [
        {"username": "cashier", "password": "Wrong123!"},
        {"username": "nobody", "password": PASSWORD},
    ])
    def test_bad_credentials(self, client, cashier_user, body):
        resp = client.post("/api/auth/login", json=body)
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid credentials"

    def test_missing_fields(self, client):
        resp = client.post("/api/auth/login", json={"username": "cashier"})
        assert resp.status_code == 400

    def test_deactivated_user_token_rejected(self, client, db_session, cashier_user):
        token = token_for(client, "cashier")
        cashier_user.is_active = False
        db_session.commit()

        resp = client.get("/api/auth/me", headers=bearer(token))
        assert resp.status_code == 401


class TestRouteProtection:

    @pytest.mark.parametrize("method,path", [
        ("get", "/api/sales"),
        ("post", "/api/sales"),
        ("get", "/api/products"),
        ("get", "/api/orders"),
        ("get", "/api/kitchen/active-orders"),
        ("get", "/api/users"),
    ])
    def test_requires_token(self, client, db_session, method, path):
        resp = getattr(client, method)(path)
        assert resp.status_code == 401

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/products", headers=bearer("not-a-token"))
        assert resp.status_code == 401

    def test_forbidden_lists_required_permissions(self, client, kitchen_headers):
        resp = client.get("/api/users", headers=kitchen_headers)
        assert resp.status_code == 403
        assert resp.json["error"] == "Permission denied"
        assert resp.json["required_permissions"] == ["MANAGE_USERS"]

    def test_any_of_permissions_is_enough(self, client, cashier_headers, today_session):
        # cashier has MANAGE_SALES but not MANAGE_SESSIONS
        resp = client.get("/api/sessions/active", headers=cashier_headers)
        assert resp.status_code == 200


class TestUserAdministration:

    def test_create_user(self, client, admin_headers):
        resp = client.post(
            "/api/users",
            json={"username": "ayse", "password": PASSWORD, "role": "cashier"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json["role"] == "cashier"

        resp = client.post(
            "/api/users",
            json={"username": "ayse", "password": PASSWORD, "role": "cashier"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json["error"] == "Username already exists"

    def test_weak_password_rejected(self, client, admin_headers):
        resp = client.post(
            "/api/users",
            json={"username": "ayse", "password": "short", "role": "cashier"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

        with pytest.raises(PasswordValidationError):
            auth_service.validate_password_strength("password123!")

    def test_cannot_delete_self(self, db_session, admin_user):
        with pytest.raises(ConflictError):
            auth_service.delete_user(admin_user.id, acting_user_id=admin_user.id)

    def test_password_change_revokes_tokens(self, client, admin_headers, cashier_user):
        token = token_for(client, "cashier")

        resp = client.put(
            f"/api/users/{cashier_user.id}/password",
            json={"password": "NewPassword1!"},
            headers=admin_headers,
        )
        assert resp.status_code == 200

        assert client.get("/api/auth/me", headers=bearer(token)).status_code == 401
        assert token_for(client, "cashier", "NewPassword1!") is not None

    def test_manager_cannot_manage_users(self, client, manager_headers):
        resp = client.post(
            "/api/users",
            json={"username": "ayse", "password": PASSWORD, "role": "cashier"},
            headers=manager_headers,
        )
        assert resp.status_code == 403

    def test_role_permission_grant_and_revoke(self, client, admin_headers, db_session):
        role = auth_service.get_role_by_name("kitchen")
        perm = db_session.query(Permission).filter_by(code="MANAGE_ORDERS").one()

        resp = client.post(f"/api/roles/{role.id}/permissions/{perm.id}", headers=admin_headers)
        assert resp.status_code == 201
        assert "MANAGE_ORDERS" in permission_service.get_role_permissions(role.id)

        resp = client.delete(f"/api/roles/{role.id}/permissions/{perm.id}", headers=admin_headers)
        assert resp.status_code == 200
        resp = client.delete(f"/api/roles/{role.id}/permissions/{perm.id}", headers=admin_headers)
        assert resp.status_code == 404

    def test_cannot_delete_assigned_role(self, client, admin_headers, admin_user):
        role = auth_service.get_role_by_name("admin")
        resp = client.delete(f"/api/roles/{role.id}", headers=admin_headers)
        assert resp.status_code == 400
