"""
API tests for /api/v1/customers
"""


class TestCustomerListing:
    """Test listing and filtering customers"""

    def test_search_matches_city(self, client, auth_headers):
        response = client.get("/api/v1/customers/?search=valpa", headers=auth_headers("sales@demo.store"))

        data = response.json()
        assert data["total"] == 1
        assert data["data"][0]["email"] == "bruno@example.com"

    def test_tag_filter(self, client, auth_headers):
        response = client.get("/api/v1/customers/?tag=vip", headers=auth_headers("sales@demo.store"))

        assert [c["name"] for c in response.json()["data"]] == ["Ana Torres"]

    def test_detail_includes_recent_orders(self, client, auth_headers, customer):
        ana = customer("ana@example.com")

        response = client.get(f"/api/v1/customers/{ana.id}", headers=auth_headers("sales@demo.store"))

        data = response.json()["data"]
        assert {o["order_number"] for o in data["recent_orders"]} == {"ORD-DEMO-0001", "ORD-DEMO-0003"}
        assert data["total_orders"] == 2

    def test_inventory_manager_cannot_read_customers(self, client, auth_headers):
        response = client.get("/api/v1/customers/", headers=auth_headers("inventory@demo.store"))

        assert response.status_code == 403


class TestCustomerWrites:
    """Test creating, updating and deleting customers"""

    def test_create_customer(self, client, auth_headers):
        response = client.post(
            "/api/v1/customers/",
            headers=auth_headers("sales@demo.store"),
            json={"name": "Diego Paz", "email": "diego@example.com", "tags": ["newsletter"]},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["total_orders"] == 0
        assert data["total_spent"] == 0.0

    def test_duplicate_email_is_409(self, client, auth_headers):
        response = client.post(
            "/api/v1/customers/",
            headers=auth_headers("sales@demo.store"),
            json={"name": "Other Ana", "email": "ana@example.com"},
        )

        assert response.status_code == 409
        assert response.json()["code"] == "ConflictError"

    def test_invalid_email_is_422(self, client, auth_headers):
        response = client.post(
            "/api/v1/customers/",
            headers=auth_headers("sales@demo.store"),
            json={"name": "No Mail", "email": "not-an-email"},
        )

        assert response.status_code == 422

    def test_update_to_taken_email_is_409(self, client, auth_headers, customer):
        bruno = customer("bruno@example.com")

        response = client.patch(
            f"/api/v1/customers/{bruno.id}",
            headers=auth_headers("sales@demo.store"),
            json={"email": "carla@example.com"},
        )

        assert response.status_code == 409

    def test_update_own_email_is_allowed(self, client, auth_headers, customer):
        bruno = customer("bruno@example.com")

        response = client.patch(
            f"/api/v1/customers/{bruno.id}",
            headers=auth_headers("sales@demo.store"),
            json={"email": "bruno@example.com", "city": "Vina del Mar"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["city"] == "Vina del Mar"

    def test_customer_with_orders_cannot_be_deleted(self, client, auth_headers, customer):
        ana = customer("ana@example.com")

        response = client.delete(f"/api/v1/customers/{ana.id}", headers=auth_headers("admin@demo.store"))

        assert response.status_code == 409

    def test_delete_customer_without_orders(self, client, auth_headers, customer):
        carla = customer("carla@example.com")

        response = client.delete(f"/api/v1/customers/{carla.id}", headers=auth_headers("admin@demo.store"))

        assert response.status_code == 200
        follow_up = client.get(f"/api/v1/customers/{carla.id}", headers=auth_headers("admin@demo.store"))
        assert follow_up.status_code == 404
