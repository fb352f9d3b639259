"""
API tests for login, current user and user management

Author: SmartStore
Date: 2025-11-12
"""
from smartstore.core.config import settings
from smartstore.services.seed_service import DEMO_PASSWORD


class TestLogin:
    """Test POST /api/v1/auth/login"""

    def test_login_returns_token_and_user(self, client):
        response = client.post("/api/v1/auth/login", json={"email": "admin@demo.store", "password": DEMO_PASSWORD})

        assert response.status_code == 200
        body = response.json()["data"]
        assert body["token_type"] == "bearer"
        assert body["user"]["email"] == "admin@demo.store"
        assert body["user"]["role"] == "TENANT_ADMIN"
        assert body["user"]["last_login_at"] is not None
        assert "password_hash" not in body["user"]

    def test_token_from_login_works(self, client):
        token = client.post(
            "/api/v1/auth/login", json={"email": "finance@demo.store", "password": DEMO_PASSWORD}
        ).json()["data"]["access_token"]

        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["data"]["role_tag"] == "finance_officer"

    def test_wrong_password_is_401(self, client):
        response = client.post("/api/v1/auth/login", json={"email": "admin@demo.store", "password": "nope"})

        assert response.status_code == 401
        assert response.json()["code"] == "AuthenticationError"

    def test_email_is_case_insensitive(self, client):
        response = client.post("/api/v1/auth/login", json={"email": "ADMIN@demo.store", "password": DEMO_PASSWORD})

        assert response.status_code == 200

    def test_login_is_rate_limited(self, client):
        for _ in range(settings.LOGIN_RATE_LIMIT_PER_MINUTE):
            client.post("/api/v1/auth/login", json={"email": "admin@demo.store", "password": "nope"})

        response = client.post("/api/v1/auth/login", json={"email": "admin@demo.store", "password": DEMO_PASSWORD})

        assert response.status_code == 429
        assert "Retry-After" in response.headers

    def test_forwarded_for_does_not_reset_the_limit(self, client):
        statuses = [
            client.post(
                "/api/v1/auth/login",
                headers={"X-Forwarded-For": f"198.51.100.{attempt}"},
                json={"email": "admin@demo.store", "password": "nope"},
            ).status_code
            for attempt in range(15)
        ]

        limit = settings.LOGIN_RATE_LIMIT_PER_MINUTE
        assert statuses[:limit] == [401] * limit
        assert statuses[limit:] == [429] * (15 - limit)


class TestCurrentUser:

    def test_missing_token_is_401(self, client):
        response = client.get("/api/v1/auth/me")

        assert response.status_code == 401

    def test_permissions_for_marketing_manager(self, client, auth_headers):
        response = client.get("/api/v1/auth/permissions", headers=auth_headers("marketing@demo.store"))

        data = response.json()["data"]
        assert "marketing.manage" in data["permissions"]
        assert "finance.read" not in data["permissions"]
        assert "/campaigns" in data["routes"]
        assert "/expenses" not in data["routes"]


class TestUserManagement:
    """Test /api/v1/auth/users"""

    def test_tenant_admin_creates_staff(self, client, auth_headers, demo_org):
        response = client.post(
            "/api/v1/auth/users",
            headers=auth_headers("admin@demo.store"),
            json={"email": "picker@demo.store", "password": "picker-pass", "role": "STAFF", "role_tag": "inventory_manager"},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["organization_id"] == demo_org.id
        assert data["role_tag"] == "inventory_manager"

    def test_duplicate_email_is_409(self, client, auth_headers):
        response = client.post(
            "/api/v1/auth/users",
            headers=auth_headers("admin@demo.store"),
            json={"email": "sales@demo.store", "password": "another-pass"},
        )

        assert response.status_code == 409

    def test_tenant_admin_cannot_create_super_admin(self, client, auth_headers):
        response = client.post(
            "/api/v1/auth/users",
            headers=auth_headers("admin@demo.store"),
            json={"email": "root2@smartstore.dev", "password": "root-pass-2", "role": "SUPER_ADMIN"},
        )

        assert response.status_code == 403

    def test_staff_without_user_permission_is_forbidden(self, client, auth_headers):
        response = client.get("/api/v1/auth/users", headers=auth_headers("sales@demo.store"))

        assert response.status_code == 403

    def test_hr_manager_lists_users(self, client, auth_headers):
        response = client.get("/api/v1/auth/users", headers=auth_headers("hr@demo.store"))

        assert response.status_code == 200
        emails = {u["email"] for u in response.json()["data"]}
        assert "admin@demo.store" in emails
        assert "superadmin@smartstore.dev" not in emails
