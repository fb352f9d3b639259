"""
Expenses API Endpoints
Restricted to admins and finance officers
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from smartstore.core.auth import TokenUser, get_organization_scope, require_permission
from smartstore.core.database import get_db
from smartstore.core.rbac import Permission
from smartstore.domain.finance import Expense, ExpenseCreate, ExpenseUpdate
from smartstore.services.expense_service import ExpenseService

router = APIRouter()


@router.get("/")
async def get_expenses(
    category: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(require_permission(Permission.FINANCE_READ)),
    db: Session = Depends(get_db),
):
    service = ExpenseService(db, get_organization_scope(user, organization_id))
    expenses, total = service.list_expenses(
        category=category, start_date=start_date, end_date=end_date, limit=limit, offset=offset,
    )
    return {
        "status": "success",
        "total": total,
        "limit": limit,
        "offset": offset,
        "count": len(expenses),
        "data": [Expense.model_validate(e).to_dict() for e in expenses],
    }


@router.get("/summary")
async def get_expense_summary(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.FINANCE_READ)),
    db: Session = Depends(get_db),
):
    summary = ExpenseService(db, get_organization_scope(user, organization_id)).summary(start_date, end_date)
    return {"status": "success", "data": summary}


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_expense(
    data: ExpenseCreate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.FINANCE_CREATE)),
    db: Session = Depends(get_db),
):
    service = ExpenseService(db, get_organization_scope(user, organization_id))
    expense = service.create_expense(data, created_by_id=user.id)
    return {"status": "success", "data": Expense.model_validate(expense).to_dict()}


@router.get("/{expense_id}")
async def get_expense(
    expense_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.FINANCE_READ)),
    db: Session = Depends(get_db),
):
    expense = ExpenseService(db, get_organization_scope(user, organization_id)).get_expense(expense_id)
    return {"status": "success", "data": Expense.model_validate(expense).to_dict()}


@router.patch("/{expense_id}")
async def update_expense(
    expense_id: int,
    data: ExpenseUpdate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.FINANCE_UPDATE)),
    db: Session = Depends(get_db),
):
    expense = ExpenseService(db, get_organization_scope(user, organization_id)).update_expense(expense_id, data)
    return {"status": "success", "data": Expense.model_validate(expense).to_dict()}


@router.delete("/{expense_id}")
async def delete_expense(
    expense_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.FINANCE_DELETE)),
    db: Session = Depends(get_db),
):
    ExpenseService(db, get_organization_scope(user, organization_id)).delete_expense(expense_id)
    return {"status": "success", "message": f"Expense {expense_id} deleted"}
