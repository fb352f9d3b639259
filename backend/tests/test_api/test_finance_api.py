"""
API tests for expenses and report generation/export

Author: SmartStore
Date: 2025-11-12
"""
import io
from datetime import date

from openpyxl import load_workbook

from smartstore.models import Customer


class TestExpenses:
    """Test /api/v1/expenses"""

    def test_finance_officer_records_expense(self, client, auth_headers):
        response = client.post(
            "/api/v1/expenses/",
            headers=auth_headers("finance@demo.store"),
            json={"amount": "42.10", "category": "supplies", "expense_date": date.today().isoformat()},
        )

        assert response.status_code == 201
        assert response.json()["data"]["amount"] == 42.1

    def test_summary_groups_by_category(self, client, auth_headers):
        response = client.get("/api/v1/expenses/summary", headers=auth_headers("finance@demo.store"))

        data = response.json()["data"]
        assert data["total"] == 1475.5
        assert data["count"] == 3
        assert {c["category"] for c in data["by_category"]} == {"rent", "shipping", "marketing"}

    def test_non_positive_amount_is_422(self, client, auth_headers):
        response = client.post(
            "/api/v1/expenses/",
            headers=auth_headers("finance@demo.store"),
            json={"amount": "0", "category": "supplies", "expense_date": date.today().isoformat()},
        )

        assert response.status_code == 422

    def test_finance_officer_cannot_delete(self, client, auth_headers):
        expense_id = client.get("/api/v1/expenses/", headers=auth_headers("finance@demo.store")).json()["data"][0]["id"]

        response = client.delete(f"/api/v1/expenses/{expense_id}", headers=auth_headers("finance@demo.store"))

        assert response.status_code == 403

    def test_marketing_cannot_read_expenses(self, client, auth_headers):
        response = client.get("/api/v1/expenses/", headers=auth_headers("marketing@demo.store"))

        assert response.status_code == 403


class TestReports:
    """Test POST /api/v1/reports/generate"""

    def test_sales_report_json(self, client, auth_headers):
        response = client.post(
            "/api/v1/reports/generate", headers=auth_headers("admin@demo.store"), json={"report_type": "sales"}
        )

        assert response.status_code == 200
        report = response.json()["data"]
        assert report["summary"]["order_count"] == 3
        assert report["summary"]["total_revenue"] == 227.7
        assert report["top_products"][0]["sku"] == "ELEC-001"

    def test_financial_report_nets_expenses(self, client, auth_headers):
        response = client.post(
            "/api/v1/reports/generate", headers=auth_headers("finance@demo.store"), json={"report_type": "financial"}
        )

        summary = response.json()["data"]["summary"]
        assert summary["revenue"] == 227.7
        assert summary["expenses"] == 1475.5
        assert summary["net"] == -1247.8

    def test_inventory_report_lists_low_stock(self, client, auth_headers):
        response = client.post(
            "/api/v1/reports/generate", headers=auth_headers("inventory@demo.store"), json={"report_type": "inventory"}
        )

        report = response.json()["data"]
        assert report["summary"]["total_products"] == 6
        assert [p["sku"] for p in report["low_stock"]] == ["HOME-002"]

    def test_unknown_report_type_is_400(self, client, auth_headers):
        response = client.post(
            "/api/v1/reports/generate", headers=auth_headers("admin@demo.store"), json={"report_type": "weather"}
        )

        assert response.status_code == 400
        assert "sales" in response.json()["details"]["allowed"]

    def test_inverted_period_is_400(self, client, auth_headers):
        response = client.post(
            "/api/v1/reports/generate",
            headers=auth_headers("admin@demo.store"),
            json={"report_type": "sales", "start_date": "2025-02-01", "end_date": "2025-01-01"},
        )

        assert response.status_code == 400

    def test_csv_export(self, client, auth_headers):
        response = client.post(
            "/api/v1/reports/generate",
            headers=auth_headers("finance@demo.store"),
            json={"report_type": "sales", "format": "csv"},
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        lines = response.text.strip().splitlines()
        assert lines[0] == "order_number,date,customer,status,payment_status,total"
        assert len(lines) == 4

    def test_xlsx_export_has_styled_header(self, client, auth_headers):
        response = client.post(
            "/api/v1/reports/generate",
            headers=auth_headers("admin@demo.store"),
            json={"report_type": "inventory", "format": "xlsx"},
        )

        sheet = load_workbook(io.BytesIO(response.content)).active
        assert sheet.cell(row=1, column=1).value == "Sku"
        assert sheet.cell(row=1, column=1).font.bold
        assert sheet.max_row == 7

    def test_export_requires_export_permission(self, client, auth_headers):
        response = client.post(
            "/api/v1/reports/generate",
            headers=auth_headers("inventory@demo.store"),
            json={"report_type": "inventory", "format": "csv"},
        )

        assert response.status_code == 403


class TestExportSafety:
    """Test spreadsheet-safe exports"""

    def _add_customer(self, seeded, demo_org, name):
        seeded.add(Customer(organization_id=demo_org.id, name=name, email="mallory@example.com"))
        seeded.commit()

    def test_xlsx_cells_are_never_formulas(self, client, auth_headers, seeded, demo_org):
        self._add_customer(seeded, demo_org, '=HYPERLINK("http://evil","x")')

        response = client.post(
            "/api/v1/reports/generate",
            headers=auth_headers("admin@demo.store"),
            json={"report_type": "customers", "format": "xlsx"},
        )

        sheet = load_workbook(io.BytesIO(response.content)).active
        cell = next(c for (c,) in sheet.iter_rows(min_row=2, max_col=1) if "HYPERLINK" in str(c.value))
        assert cell.data_type == "s"
        assert cell.value == '\'=HYPERLINK("http://evil","x")'

    def test_csv_cells_are_escaped(self, client, auth_headers, seeded, demo_org):
        self._add_customer(seeded, demo_org, "@SUM(1+1)")

        response = client.post(
            "/api/v1/reports/generate",
            headers=auth_headers("admin@demo.store"),
            json={"report_type": "customers", "format": "csv"},
        )

        names = [line.split(",")[0] for line in response.text.strip().splitlines()[1:]]
        assert "'@SUM(1+1)" in names
        assert "@SUM(1+1)" not in names

    def test_empty_report_keeps_header(self, client, auth_headers):
        response = client.post(
            "/api/v1/reports/generate",
            headers=auth_headers("admin@demo.store"),
            json={"report_type": "sales", "format": "csv", "start_date": "2000-01-01", "end_date": "2000-01-31"},
        )

        assert response.status_code == 200
        assert response.text.strip().splitlines() == ["order_number,date,customer,status,payment_status,total"]
