"""
Report Service
Sales, inventory, customer and financial reports with CSV / Excel export

Aggregation is done with pandas over ORM rows; Excel files are built with
openpyxl using the same header styling as the other spreadsheet exports.

Author: SmartStore
Date: 2025-11-07
"""
import io
import logging
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Tuple

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from openpyxl.utils import get_column_letter
from sqlalchemy.orm import Session

from smartstore.core.exceptions import ValidationError
from smartstore.domain.finance import ReportFormat, ReportType
from smartstore.domain.order import STOCK_RELEASED_STATUSES
from smartstore.models import Order, OrderItem, Product, Customer, Expense
from smartstore.models.base import utcnow

logger = logging.getLogger(__name__)

DEFAULT_RANGE_DAYS = 30
TOP_N = 10
RELEASED = [s.value for s in STOCK_RELEASED_STATUSES]

MEDIA_TYPES = {
    ReportFormat.CSV: "text/csv",
    ReportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}

# Main table columns, so an empty report still exports a header row
REPORT_COLUMNS = {
    ReportType.SALES.value: ["order_number", "date", "customer", "status", "payment_status", "total"],
    ReportType.INVENTORY.value: [
        "sku", "name", "brand", "stock_quantity", "min_stock", "unit_cost", "stock_value", "is_low_stock", "is_active",
    ],
    ReportType.CUSTOMERS.value: ["name", "email", "city", "created_at", "total_orders", "total_spent", "membership_tier"],
    ReportType.FINANCIAL.value: ["line", "amount"],
}

# Spreadsheet apps evaluate cells starting with these as formulas
FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")


def _round(value) -> float:
    return round(float(value or 0), 2)


def _neutralize_formula(value):
    """Prefix text cells that a spreadsheet would run as a formula with a quote"""
    if isinstance(value, str) and value.startswith(FORMULA_PREFIXES):
        return "'" + value
    return value


class ReportService:
    """
    Service for generating reports for one organization

    Every report returns:
        {
            "report_type": "sales",
            "period": {"start_date": "...", "end_date": "..."},
            "summary": {...},
            "rows": [...],   # main table, used for CSV/XLSX export
            ...              # report specific sections
        }
    """

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id

    @staticmethod
    def resolve_period(start_date: Optional[date], end_date: Optional[date]) -> Tuple[date, date]:
        """Default to the last 30 days ending today"""
        end_date = end_date or utcnow().date()
        start_date = start_date or end_date - timedelta(days=DEFAULT_RANGE_DAYS)
        if start_date > end_date:
            raise ValidationError("start_date must be on or before end_date")
        return start_date, end_date

    def generate(self, report_type: str, start_date: Optional[date] = None, end_date: Optional[date] = None) -> Dict:
        try:
            kind = ReportType(str(report_type).lower())
        except ValueError:
            raise ValidationError(
                f"Unknown report type '{report_type}'",
                {"allowed": [t.value for t in ReportType]},
            )

        start_date, end_date = self.resolve_period(start_date, end_date)
        start = datetime.combine(start_date, time.min)
        end = datetime.combine(end_date, time.max)

        builders = {
            ReportType.SALES: self._sales_report,
            ReportType.INVENTORY: self._inventory_report,
            ReportType.CUSTOMERS: self._customers_report,
            ReportType.FINANCIAL: self._financial_report,
        }
        report = builders[kind](start, end)
        report["report_type"] = kind.value
        report["period"] = {"start_date": start_date.isoformat(), "end_date": end_date.isoformat()}
        report["generated_at"] = utcnow().isoformat()

        logger.info(f"Report {kind.value} generated for org {self.organization_id}: {len(report['rows'])} rows")
        return report

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def _live_orders(self, start: datetime, end: datetime) -> List[Order]:
        return (
            self.db.query(Order)
            .filter(
                Order.organization_id == self.organization_id,
                Order.created_at >= start,
                Order.created_at <= end,
                Order.status.notin_(RELEASED),
            )
            .order_by(Order.created_at)
            .all()
        )

    def _sales_report(self, start: datetime, end: datetime) -> Dict:
        orders = self._live_orders(start, end)
        df = pd.DataFrame(
            [{
                "order_number": o.order_number,
                "date": o.created_at.date().isoformat(),
                "customer": o.customer.name if o.customer else None,
                "status": o.status,
                "payment_status": o.payment_status,
                "total": float(o.total or 0),
            } for o in orders],
            columns=REPORT_COLUMNS[ReportType.SALES.value],
        )

        revenue = _round(df["total"].sum()) if not df.empty else 0.0
        count = len(df)

        by_day = []
        if not df.empty:
            grouped = df.groupby("date").agg(revenue=("total", "sum"), orders=("order_number", "count")).reset_index()
            by_day = [
                {"date": row["date"], "revenue": _round(row["revenue"]), "orders": int(row["orders"])}
                for _, row in grouped.iterrows()
            ]

        return {
            "summary": {
                "total_revenue": revenue,
                "order_count": count,
                "average_order_value": _round(revenue / count) if count else 0.0,
            },
            "revenue_by_day": by_day,
            "top_products": self._top_products([o.id for o in orders]),
            "rows": df.to_dict(orient="records"),
        }

    def _top_products(self, order_ids: List[int]) -> List[Dict]:
        if not order_ids:
            return []
        items = self.db.query(OrderItem).filter(OrderItem.order_id.in_(order_ids)).all()
        df = pd.DataFrame([
            {"sku": i.sku, "name": i.name, "quantity": i.quantity, "revenue": float(i.total or 0)}
            for i in items
        ])
        if df.empty:
            return []
        top = (
            df.groupby(["sku", "name"], dropna=False)
            .agg(quantity=("quantity", "sum"), revenue=("revenue", "sum"))
            .reset_index()
            .sort_values(["revenue", "quantity"], ascending=False)
            .head(TOP_N)
        )
        return [
            {"sku": row["sku"], "name": row["name"], "quantity": int(row["quantity"]), "revenue": _round(row["revenue"])}
            for _, row in top.iterrows()
        ]

    def _inventory_report(self, start: datetime, end: datetime) -> Dict:
        products = (
            self.db.query(Product)
            .filter(Product.organization_id == self.organization_id)
            .order_by(Product.name)
            .all()
        )
        rows = []
        for p in products:
            unit_cost = float(p.cost if p.cost is not None else p.price or 0)
            rows.append({
                "sku": p.sku,
                "name": p.name,
                "brand": p.brand,
                "stock_quantity": p.stock_quantity,
                "min_stock": p.min_stock,
                "unit_cost": _round(unit_cost),
                "stock_value": _round(unit_cost * p.stock_quantity),
                "is_low_stock": p.stock_quantity <= p.min_stock,
                "is_active": p.is_active,
            })

        df = pd.DataFrame(rows, columns=REPORT_COLUMNS[ReportType.INVENTORY.value])
        low = df[df["is_low_stock"]] if not df.empty else df

        return {
            "summary": {
                "total_products": len(df),
                "total_units": int(df["stock_quantity"].sum()) if not df.empty else 0,
                "total_stock_value": _round(df["stock_value"].sum()) if not df.empty else 0.0,
                "low_stock_count": len(low),
            },
            "low_stock": low[["sku", "name", "stock_quantity", "min_stock"]].to_dict(orient="records"),
            "rows": rows,
        }

    def _customers_report(self, start: datetime, end: datetime) -> Dict:
        base = self.db.query(Customer).filter(Customer.organization_id == self.organization_id)
        new_customers = (
            base.filter(Customer.created_at >= start, Customer.created_at <= end).order_by(Customer.created_at).all()
        )
        top_spenders = base.order_by(Customer.total_spent.desc(), Customer.id).limit(TOP_N).all()

        rows = [{
            "name": c.name,
            "email": c.email,
            "city": c.city,
            "created_at": c.created_at.date().isoformat(),
            "total_orders": c.total_orders,
            "total_spent": _round(c.total_spent),
            "membership_tier": c.membership_tier,
        } for c in new_customers]

        return {
            "summary": {"new_customers": len(rows), "total_customers": base.count()},
            "top_spenders": [
                {"id": c.id, "name": c.name, "email": c.email, "total_spent": _round(c.total_spent), "total_orders": c.total_orders}
                for c in top_spenders
            ],
            "rows": rows,
        }

    def _financial_report(self, start: datetime, end: datetime) -> Dict:
        orders = self._live_orders(start, end)
        revenue = _round(sum(float(o.total or 0) for o in orders))
        tax = _round(sum(float(o.tax or 0) for o in orders))

        expenses = (
            self.db.query(Expense)
            .filter(
                Expense.organization_id == self.organization_id,
                Expense.expense_date >= start.date(),
                Expense.expense_date <= end.date(),
            )
            .all()
        )
        df = pd.DataFrame(
            [{"category": e.category, "amount": float(e.amount)} for e in expenses],
            columns=["category", "amount"],
        )
        by_category = []
        if not df.empty:
            grouped = df.groupby("category")["amount"].sum().sort_values(ascending=False)
            by_category = [{"category": cat, "amount": _round(amount)} for cat, amount in grouped.items()]
        total_expenses = _round(df["amount"].sum()) if not df.empty else 0.0
        net = _round(revenue - tax - total_expenses)

        rows = [{"line": "Revenue", "amount": revenue}, {"line": "Tax", "amount": -tax}]
        rows += [{"line": f"Expense: {item['category']}", "amount": -item["amount"]} for item in by_category]
        rows.append({"line": "Net", "amount": net})

        return {
            "summary": {
                "revenue": revenue,
                "tax": tax,
                "expenses": total_expenses,
                "net": net,
                "order_count": len(orders),
            },
            "expenses_by_category": by_category,
            "rows": rows,
        }

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export(self, report: Dict, fmt: ReportFormat) -> Tuple[bytes, str, str]:
        """
        Serialize the report's main table

        Returns:
            (content, media_type, filename)
        """
        fmt = ReportFormat(fmt)
        if fmt == ReportFormat.JSON:
            raise ValidationError("JSON reports are returned inline")

        df = pd.DataFrame(report["rows"], columns=REPORT_COLUMNS.get(report["report_type"]))
        df = df.map(_neutralize_formula)
        stamp = report["period"]["end_date"].replace("-", "")
        filename = f"{report['report_type']}_report_{stamp}.{fmt.value}"

        if fmt == ReportFormat.CSV:
            return df.to_csv(index=False).encode("utf-8"), MEDIA_TYPES[fmt], filename

        return self._to_xlsx(df, f"{report['report_type'].title()} Report").getvalue(), MEDIA_TYPES[fmt], filename

    @staticmethod
    def _to_xlsx(df: pd.DataFrame, title: str) -> io.BytesIO:
        wb = Workbook()
        ws = wb.active
        ws.title = title[:31]

        # Define styles
        header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
        header_font = Font(color="FFFFFF", bold=True, size=12)
        border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )

        headers = [str(c).replace("_", " ").title() for c in df.columns]
        for col_num, header in enumerate(headers, 1):
            cell = ws.cell(row=1, column=col_num, value=header)
            cell.fill = header_fill
            cell.font = header_font
            cell.alignment = Alignment(horizontal='center', vertical='center')
            cell.border = border

        # Plain Python values, NaN -> empty cell
        clean = df.astype(object).where(pd.notna(df), None)
        for row_num, values in enumerate(clean.itertuples(index=False), 2):
            for col_num, value in enumerate(values, 1):
                cell = ws.cell(row=row_num, column=col_num, value=value)
                cell.border = border
                if isinstance(value, float):
                    cell.alignment = Alignment(horizontal='right', vertical='center')
                    cell.number_format = '#,##0.00'
                elif isinstance(value, int) and not isinstance(value, bool):
                    cell.alignment = Alignment(horizontal='right', vertical='center')
                    cell.number_format = '#,##0'
                else:
                    cell.alignment = Alignment(horizontal='left', vertical='center')

        for col_num, header in enumerate(headers, 1):
            ws.column_dimensions[get_column_letter(col_num)].width = max(len(header) + 4, 15)

        # Freeze header row
        ws.freeze_panes = 'A2'

        excel_file = io.BytesIO()
        wb.save(excel_file)
        excel_file.seek(0)
        return excel_file
