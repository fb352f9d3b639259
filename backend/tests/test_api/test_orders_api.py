"""
API tests for order creation, status changes and stats

Author: SmartStore
Date: 2025-11-12
"""
from smartstore.models import Order


class TestCreateOrder:
    """Test POST /api/v1/orders"""

    def test_order_totals_and_stock(self, client, auth_headers, product, customer):
        speaker = product("ELEC-002")
        carla = customer("carla@example.com")

        response = client.post(
            "/api/v1/orders/",
            headers=auth_headers("sales@demo.store"),
            json={
                "customer_id": carla.id,
                "items": [{"product_id": speaker.id, "quantity": 2}],
                "tax": "10.00",
                "shipping": "5.00",
                "discount": "3.00",
            },
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["subtotal"] == 119.8
        assert data["total"] == 131.8
        assert data["item_count"] == 1
        assert data["order_number"].startswith("ORD-")
        assert product("ELEC-002").stock_quantity == 23
        assert customer("carla@example.com").total_orders == 1

    def test_insufficient_stock_writes_nothing(self, client, auth_headers, product, seeded):
        before = seeded.query(Order).count()

        response = client.post(
            "/api/v1/orders/",
            headers=auth_headers("admin@demo.store"),
            json={"items": [
                {"product_id": product("ELEC-002").id, "quantity": 1},
                {"product_id": product("HOME-002").id, "quantity": 4},
            ]},
        )

        assert response.status_code == 400
        assert response.json()["details"]["available"] == 3
        assert seeded.query(Order).count() == before
        assert product("ELEC-002").stock_quantity == 25

    def test_duplicate_order_number_is_409(self, client, auth_headers, product):
        response = client.post(
            "/api/v1/orders/",
            headers=auth_headers("admin@demo.store"),
            json={"order_number": "ORD-DEMO-0001", "items": [{"product_id": product("ELEC-002").id, "quantity": 1}]},
        )

        assert response.status_code == 409

    def test_empty_items_is_422(self, client, auth_headers):
        response = client.post("/api/v1/orders/", headers=auth_headers("admin@demo.store"), json={"items": []})

        assert response.status_code == 422


class TestOrderStatus:
    """Test PATCH /api/v1/orders/{id}"""

    def _order(self, seeded, number):
        return seeded.query(Order).filter(Order.order_number == number).one()

    def test_cancel_restores_stock(self, client, auth_headers, seeded, product, customer):
        order = self._order(seeded, "ORD-DEMO-0003")

        response = client.patch(
            f"/api/v1/orders/{order.id}", headers=auth_headers("admin@demo.store"), json={"status": "CANCELLED"}
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "CANCELLED"
        assert product("APP-001").stock_quantity == 60
        assert customer("ana@example.com").total_orders == 1

    def test_invalid_transition_is_400(self, client, auth_headers, seeded):
        order = self._order(seeded, "ORD-DEMO-0003")

        response = client.patch(
            f"/api/v1/orders/{order.id}", headers=auth_headers("admin@demo.store"), json={"status": "DELIVERED"}
        )

        assert response.status_code == 400
        assert response.json()["details"] == {"from": "PENDING", "to": "DELIVERED"}

    def test_refund_after_delivery(self, client, auth_headers, seeded, product):
        order = self._order(seeded, "ORD-DEMO-0001")

        response = client.patch(
            f"/api/v1/orders/{order.id}", headers=auth_headers("admin@demo.store"), json={"status": "REFUNDED"}
        )

        assert response.json()["data"]["payment_status"] == "REFUNDED"
        assert product("ELEC-001").stock_quantity == 40
        assert product("ELEC-003").stock_quantity == 120

    def test_only_cancelled_orders_are_deleted(self, client, auth_headers, seeded):
        order = self._order(seeded, "ORD-DEMO-0002")
        headers = auth_headers("admin@demo.store")

        assert client.delete(f"/api/v1/orders/{order.id}", headers=headers).status_code == 400

        client.patch(f"/api/v1/orders/{order.id}", headers=headers, json={"status": "CANCELLED"})
        assert client.delete(f"/api/v1/orders/{order.id}", headers=headers).status_code == 200


class TestOrderStats:

    def test_stats_exclude_cancelled(self, client, auth_headers, seeded):
        headers = auth_headers("finance@demo.store")
        order = seeded.query(Order).filter(Order.order_number == "ORD-DEMO-0002").one()
        client.patch(f"/api/v1/orders/{order.id}", headers=auth_headers("admin@demo.store"), json={"status": "CANCELLED"})

        stats = client.get("/api/v1/orders/stats", headers=headers).json()["data"]

        assert stats["total_orders"] == 3
        assert stats["by_status"]["CANCELLED"] == 1
        assert stats["revenue"] == 177.7
        assert stats["average_order_value"] == 88.85
