"""
API tests for products, stock adjustments and bulk import

Author: SmartStore
Date: 2025-11-12
"""
import io

import pandas as pd

from smartstore.models import InventoryMovement


class TestProductCrud:
    """Test /api/v1/products"""

    def test_list_flags_low_stock(self, client, auth_headers):
        response = client.get("/api/v1/products/?low_stock=true", headers=auth_headers("admin@demo.store"))

        assert response.status_code == 200
        data = response.json()["data"]
        assert [p["sku"] for p in data] == ["HOME-002"]
        assert data[0]["is_low_stock"] is True

    def test_create_product_computes_margin(self, client, auth_headers):
        response = client.post(
            "/api/v1/products/",
            headers=auth_headers("inventory@demo.store"),
            json={"sku": "ELEC-010", "name": "Smart Plug", "price": "20.00", "cost": "15.00", "stock_quantity": 10},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["margin"] == 25.0
        assert data["source"] == "manual"

    def test_duplicate_sku_is_409(self, client, auth_headers):
        response = client.post(
            "/api/v1/products/",
            headers=auth_headers("admin@demo.store"),
            json={"sku": "ELEC-001", "name": "Copy"},
        )

        assert response.status_code == 409

    def test_sales_executive_cannot_create(self, client, auth_headers):
        response = client.post(
            "/api/v1/products/",
            headers=auth_headers("sales@demo.store"),
            json={"sku": "X-1", "name": "Nope"},
        )

        assert response.status_code == 403

    def test_product_in_orders_cannot_be_deleted(self, client, auth_headers, product):
        response = client.delete(f"/api/v1/products/{product('ELEC-001').id}", headers=auth_headers("admin@demo.store"))

        assert response.status_code == 409

    def test_unused_product_is_deleted(self, client, auth_headers, product):
        product_id = product("HOME-002").id
        headers = auth_headers("admin@demo.store")

        assert client.delete(f"/api/v1/products/{product_id}", headers=headers).status_code == 200
        assert client.get(f"/api/v1/products/{product_id}", headers=headers).status_code == 404


class TestStockAdjustment:
    """Test POST /api/v1/products/{id}/adjust-stock"""

    def test_adjustment_records_movement(self, client, auth_headers, product, seeded):
        lamp = product("HOME-002")

        response = client.post(
            f"/api/v1/products/{lamp.id}/adjust-stock",
            headers=auth_headers("inventory@demo.store"),
            json={"quantity_change": 7, "reason": "Supplier delivery"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["product"]["stock_quantity"] == 10
        assert data["product"]["is_low_stock"] is False
        assert data["movement"]["stock_before"] == 3
        assert data["movement"]["stock_after"] == 10
        assert data["movement"]["movement_type"] == "ADJUSTMENT"
        assert data["movement"]["created_by"] == "inventory@demo.store"

    def test_stock_never_goes_negative(self, client, auth_headers, product, seeded):
        lamp = product("HOME-002")

        response = client.post(
            f"/api/v1/products/{lamp.id}/adjust-stock",
            headers=auth_headers("admin@demo.store"),
            json={"quantity_change": -4},
        )

        assert response.status_code == 400
        seeded.expire_all()
        assert product("HOME-002").stock_quantity == 3
        assert seeded.query(InventoryMovement).filter(InventoryMovement.product_id == lamp.id).count() == 0

    def test_zero_change_is_rejected(self, client, auth_headers, product):
        response = client.post(
            f"/api/v1/products/{product('HOME-002').id}/adjust-stock",
            headers=auth_headers("admin@demo.store"),
            json={"quantity_change": 0},
        )

        assert response.status_code == 422

    def test_plain_staff_cannot_adjust(self, client, auth_headers, product):
        response = client.post(
            f"/api/v1/products/{product('HOME-002').id}/adjust-stock",
            headers=auth_headers("sales@demo.store"),
            json={"quantity_change": 1},
        )

        assert response.status_code == 403


class TestBulkImport:
    """Test POST /api/v1/products/import"""

    def test_csv_creates_and_updates(self, client, auth_headers, product):
        csv = (
            "SKU,Name,Price,Stock\n"
            "ELEC-001,Wireless Headphones v2,99.90,50\n"
            "NEW-001,Travel Pillow,15.00,12\n"
            ",Missing Sku,1,1\n"
        )

        response = client.post(
            "/api/v1/products/import",
            headers=auth_headers("admin@demo.store"),
            files={"file": ("products.csv", csv.encode(), "text/csv")},
        )

        assert response.status_code == 200
        result = response.json()["data"]
        assert result["created"] == 1
        assert result["updated"] == 1
        assert result["total_rows"] == 3
        assert result["errors"][0]["row"] == 4

        updated = product("ELEC-001")
        assert updated.name == "Wireless Headphones v2"
        assert updated.stock_quantity == 50

    def test_xlsx_upload(self, client, auth_headers, product):
        buffer = io.BytesIO()
        pd.DataFrame([{"sku": "XL-001", "name": "Spreadsheet Mug", "price": 9.5, "stock": 4}]).to_excel(buffer, index=False)

        response = client.post(
            "/api/v1/products/import",
            headers=auth_headers("admin@demo.store"),
            files={"file": ("catalog.xlsx", buffer.getvalue(), "application/octet-stream")},
        )

        assert response.json()["data"]["created"] == 1
        assert product("XL-001").stock_quantity == 4

    def test_numeric_skus_are_kept_as_text(self, client, auth_headers, product):
        csv = (
            "sku,name,price,stock\n"
            "1001,Bolt,0.50,100\n"
            ",Nameless,1,1\n"
            "00123,Nut,0.25,40\n"
        )

        response = client.post(
            "/api/v1/products/import",
            headers=auth_headers("admin@demo.store"),
            files={"file": ("hardware.csv", csv.encode(), "text/csv")},
        )

        result = response.json()["data"]
        assert result["created"] == 2
        assert result["errors"] == [{"row": 3, "error": "Missing sku or name"}]
        assert product("1001").stock_quantity == 100
        assert product("00123").name == "Nut"

    def test_missing_columns_is_400(self, client, auth_headers):
        response = client.post(
            "/api/v1/products/import",
            headers=auth_headers("admin@demo.store"),
            files={"file": ("bad.csv", b"foo,bar\n1,2\n", "text/csv")},
        )

        assert response.status_code == 400

    def test_unsupported_extension_is_400(self, client, auth_headers):
        response = client.post(
            "/api/v1/products/import",
            headers=auth_headers("admin@demo.store"),
            files={"file": ("catalog.pdf", b"%PDF", "application/pdf")},
        )

        assert response.status_code == 400
