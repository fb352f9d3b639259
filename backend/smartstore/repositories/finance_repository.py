"""
Expense Repository
"""
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import func

from smartstore.models import Expense
from smartstore.repositories.base import OrganizationScopedRepository


class ExpenseRepository(OrganizationScopedRepository[Expense]):
    model = Expense
    entity_name = "Expense"

    def _filtered(self, category: Optional[str], start_date: Optional[date], end_date: Optional[date]):
        query = self._query()
        if category:
            query = query.filter(Expense.category == category)
        if start_date:
            query = query.filter(Expense.expense_date >= start_date)
        if end_date:
            query = query.filter(Expense.expense_date <= end_date)
        return query

    def find_all(
        self,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[Expense], int]:
        query = self._filtered(category, start_date, end_date)
        return self._paginate(query, limit, offset, Expense.expense_date.desc())

    def totals_by_category(self, start_date: Optional[date] = None, end_date: Optional[date] = None):
        """[(category, total, count), ...] largest first"""
        query = self._filtered(None, start_date, end_date)
        return (
            query.with_entities(Expense.category, func.sum(Expense.amount), func.count(Expense.id))
            .group_by(Expense.category)
            .order_by(func.sum(Expense.amount).desc())
            .all()
        )
