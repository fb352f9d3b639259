"""
Expense Service
"""
import logging
from typing import Dict, List, Optional, Tuple
from datetime import date

from sqlalchemy.orm import Session

from smartstore.domain.finance import ExpenseCreate, ExpenseUpdate
from smartstore.models import Expense
from smartstore.repositories import ExpenseRepository

logger = logging.getLogger(__name__)


class ExpenseService:

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.expenses = ExpenseRepository(db, organization_id)

    def list_expenses(self, **filters) -> Tuple[List[Expense], int]:
        return self.expenses.find_all(**filters)

    def get_expense(self, expense_id: int) -> Expense:
        return self.expenses.get(expense_id)

    def create_expense(self, data: ExpenseCreate, created_by_id: Optional[int] = None) -> Expense:
        expense = self.expenses.add(Expense(**data.model_dump(), created_by_id=created_by_id))
        self.db.commit()
        self.db.refresh(expense)
        logger.info(f"Expense recorded: {expense.amount} {expense.category} (org {self.organization_id})")
        return expense

    def update_expense(self, expense_id: int, data: ExpenseUpdate) -> Expense:
        expense = self.expenses.get(expense_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(expense, field, value)
        self.db.commit()
        self.db.refresh(expense)
        return expense

    def delete_expense(self, expense_id: int) -> None:
        self.expenses.delete(self.expenses.get(expense_id))
        self.db.commit()

    def summary(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> Dict:
        rows = self.expenses.totals_by_category(start_date, end_date)
        by_category = [
            {"category": category, "total": float(total or 0), "count": count}
            for category, total, count in rows
        ]
        return {
            "total": round(sum(item["total"] for item in by_category), 2),
            "count": sum(item["count"] for item in by_category),
            "by_category": by_category,
            "start_date": start_date.isoformat() if start_date else None,
            "end_date": end_date.isoformat() if end_date else None,
        }
