"""
Customer Domain Model
"""
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field, EmailStr

from smartstore.domain.common import DomainModel, Money


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    tags: Optional[List[str]] = None
    is_active: Optional[bool] = None


class Customer(DomainModel):
    id: int
    organization_id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    tags: Optional[List[str]] = None
    total_spent: Money
    total_orders: int
    membership_tier: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
