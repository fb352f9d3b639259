"""
Tests for the root, health and status endpoints
"""


class TestHealth:
    """Test monitoring endpoints"""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "online"

    def test_health_reports_database(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "smartstore-api"
        assert data["database"]["status"] == "connected"

    def test_status_requires_token(self, client):
        assert client.get("/api/v1/status").status_code == 401

    def test_status_lists_integrations(self, client, auth_headers):
        response = client.get("/api/v1/status", headers=auth_headers("admin@demo.store"))

        assert response.status_code == 200
        integrations = response.json()["integrations"]
        assert integrations["shopify"] == {"configured": False, "active": False}
        assert len(integrations) == 5
