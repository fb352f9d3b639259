"""
Expense and Report Domain Models
"""
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from smartstore.domain.common import DomainModel, Money


class ExpenseCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    expense_date: date
    vendor: Optional[str] = None


class ExpenseUpdate(BaseModel):
    amount: Optional[Decimal] = Field(None, gt=0)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    expense_date: Optional[date] = None
    vendor: Optional[str] = None


class Expense(DomainModel):
    id: int
    amount: Money
    category: str
    description: Optional[str] = None
    expense_date: date
    vendor: Optional[str] = None
    created_by_id: Optional[int] = None
    created_at: datetime


class ReportType(str, Enum):
    SALES = "sales"
    INVENTORY = "inventory"
    CUSTOMERS = "customers"
    FINANCIAL = "financial"


class ReportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"
    XLSX = "xlsx"


class ReportRequest(BaseModel):
    # Plain str so an unknown type reaches the service and is reported as a ValidationError
    report_type: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    format: ReportFormat = ReportFormat.JSON
