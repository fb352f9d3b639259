"""
Courier, Delivery and Warehouse Domain Models
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, EmailStr

from smartstore.domain.common import DomainModel, Money


class DeliveryStatus(str, Enum):
    PENDING = "PENDING"
    ASSIGNED = "ASSIGNED"
    PICKED_UP = "PICKED_UP"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"


class CourierCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    vehicle_type: Optional[str] = None
    is_online: bool = False


class CourierUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    vehicle_type: Optional[str] = None
    is_online: Optional[bool] = None
    is_active: Optional[bool] = None
    rating: Optional[float] = Field(None, ge=0, le=5)


class Courier(DomainModel):
    id: int
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    vehicle_type: Optional[str] = None
    is_online: bool
    is_active: bool
    rating: Money
    total_deliveries: int
    created_at: datetime


class DeliveryAssign(BaseModel):
    order_id: int
    courier_id: int
    address: Optional[str] = None
    notes: Optional[str] = None


class DeliveryStatusUpdate(BaseModel):
    status: DeliveryStatus
    notes: Optional[str] = None


class Delivery(DomainModel):
    id: int
    order_id: int
    courier_id: int
    status: str
    tracking_number: str
    address: Optional[str] = None
    notes: Optional[str] = None
    delivered_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class WarehouseCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1, max_length=50)
    address: Optional[str] = None
    city: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=0)
    manager_name: Optional[str] = None


class WarehouseUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    address: Optional[str] = None
    city: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=0)
    manager_name: Optional[str] = None
    is_active: Optional[bool] = None


class Warehouse(DomainModel):
    id: int
    name: str
    code: str
    address: Optional[str] = None
    city: Optional[str] = None
    capacity: Optional[int] = None
    manager_name: Optional[str] = None
    is_active: bool
    created_at: datetime
