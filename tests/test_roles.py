"""
==============================================================================
Role Management Tests
==============================================================================

Role listing, creation, assignment, removal and the SuperAdmin cap.

==============================================================================
"""

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from splitter.db.models import User


ASSIGN_URL = "/api/v1/roles/assign"


class TestRoleCatalog:
    """Listing and creating roles."""

    def test_list_roles(self, client: TestClient, superadmin_headers: dict):
        response = client.get("/api/v1/roles/list", headers=superadmin_headers)
        assert response.status_code == 200
        assert set(response.json()["roles"]) >= {"User", "Admin", "SuperAdmin"}

    def test_list_roles_requires_superadmin(self, client: TestClient, admin_headers: dict):
        response = client.get("/api/v1/roles/list", headers=admin_headers)
        assert response.status_code == 403

    def test_create_role(self, client: TestClient, superadmin_headers: dict):
        response = client.post("/api/v1/roles/create", json={"role_name": "Auditor"}, headers=superadmin_headers)
        assert response.status_code == 200

        roles = client.get("/api/v1/roles/list", headers=superadmin_headers).json()["roles"]
        assert "Auditor" in roles

    def test_create_duplicate_role(self, client: TestClient, superadmin_headers: dict):
        response = client.post("/api/v1/roles/create", json={"role_name": "admin"}, headers=superadmin_headers)
        assert response.status_code == 409


class TestRoleAssignment:
    """Assigning and removing roles."""

    def test_superadmin_assigns_admin(self, client: TestClient, alice: User, superadmin_headers: dict):
        response = client.post(ASSIGN_URL, json={"user_id": alice.id, "role_name": "Admin"}, headers=superadmin_headers)
        assert response.status_code == 200

        roles = client.get(f"/api/v1/roles/user/{alice.id}", headers=superadmin_headers).json()["roles"]
        assert "Admin" in roles

    def test_admin_assigns_admin(self, client: TestClient, alice: User, admin_headers: dict):
        response = client.post(ASSIGN_URL, json={"user_id": alice.id, "role_name": "Admin"}, headers=admin_headers)
        assert response.status_code == 200

    def test_admin_cannot_assign_superadmin(self, client: TestClient, alice: User, admin_headers: dict):
        response = client.post(ASSIGN_URL, json={"user_id": alice.id, "role_name": "SuperAdmin"}, headers=admin_headers)
        assert response.status_code == 401

    def test_plain_user_cannot_assign(self, client: TestClient, bob: User, alice_headers: dict):
        response = client.post(ASSIGN_URL, json={"user_id": bob.id, "role_name": "Admin"}, headers=alice_headers)
        assert response.status_code == 401

    def test_assign_unknown_user(self, client: TestClient, superadmin_headers: dict):
        response = client.post(ASSIGN_URL, json={"user_id": "missing", "role_name": "Admin"}, headers=superadmin_headers)
        assert response.status_code == 404

    def test_assign_unknown_role(self, client: TestClient, alice: User, superadmin_headers: dict):
        response = client.post(ASSIGN_URL, json={"user_id": alice.id, "role_name": "Wizard"}, headers=superadmin_headers)
        assert response.status_code == 404

    def test_assign_existing_role(self, client: TestClient, alice: User, superadmin_headers: dict):
        response = client.post(ASSIGN_URL, json={"user_id": alice.id, "role_name": "User"}, headers=superadmin_headers)
        assert response.status_code == 409

    def test_superadmin_cap(self, client: TestClient, alice: User, superadmin_headers: dict):
        response = client.post(ASSIGN_URL, json={"user_id": alice.id, "role_name": "SuperAdmin"}, headers=superadmin_headers)
        assert response.status_code == 400
        assert response.json()["error"]["message"] == (
            "Cannot assign SuperAdmin role. Maximum limit of 1 SuperAdmin user(s) has been reached."
        )

    def test_raise_limit_then_assign(self, client: TestClient, alice: User, superadmin_headers: dict):
        response = client.put("/api/v1/roles/superadmin-limit", json={"new_limit": 2}, headers=superadmin_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["max_super_admin_users"] == 2
        assert body["current_super_admin_users"] == 1

        response = client.post(ASSIGN_URL, json={"user_id": alice.id, "role_name": "SuperAdmin"}, headers=superadmin_headers)
        assert response.status_code == 200

        response = client.put("/api/v1/roles/superadmin-limit", json={"new_limit": 1}, headers=superadmin_headers)
        assert response.status_code == 400

    def test_limit_must_be_positive(self, client: TestClient, superadmin_headers: dict):
        response = client.put("/api/v1/roles/superadmin-limit", json={"new_limit": 0}, headers=superadmin_headers)
        assert response.status_code == 422

    def test_remove_role(self, client: TestClient, db: Session, admin_user: User, superadmin_headers: dict):
        response = client.request(
            "DELETE",
            "/api/v1/roles/remove",
            json={"user_id": admin_user.id, "role_name": "Admin"},
            headers=superadmin_headers
        )
        assert response.status_code == 200

        db.refresh(admin_user)
        assert "Admin" not in admin_user.role_names

    def test_cannot_remove_last_superadmin(self, client: TestClient, superadmin_user: User, superadmin_headers: dict):
        response = client.request(
            "DELETE",
            "/api/v1/roles/remove",
            json={"user_id": superadmin_user.id, "role_name": "SuperAdmin"},
            headers=superadmin_headers
        )
        assert response.status_code == 400

    def test_user_roles_unknown_user(self, client: TestClient, superadmin_headers: dict):
        response = client.get("/api/v1/roles/user/missing", headers=superadmin_headers)
        assert response.status_code == 404
