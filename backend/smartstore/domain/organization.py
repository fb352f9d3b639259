"""
Organization and User Domain Models

Author: SmartStore
Date: 2025-11-04
"""
from datetime import datetime
from typing import Optional, Dict, Any

from pydantic import BaseModel, Field, EmailStr

from smartstore.core.rbac import UserRole, StaffRoleTag
from smartstore.domain.common import DomainModel


class OrganizationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=100, pattern=r"^[a-z0-9-]+$")
    plan: str = Field("starter", pattern=r"^(starter|professional|enterprise)$")
    settings: Dict[str, Any] = Field(default_factory=dict)


class OrganizationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    plan: Optional[str] = Field(None, pattern=r"^(starter|professional|enterprise)$")
    is_active: Optional[bool] = None
    settings: Optional[Dict[str, Any]] = None


class Organization(DomainModel):
    id: int
    name: str
    slug: str
    plan: str
    is_active: bool
    settings: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: Optional[str] = None
    role: UserRole = UserRole.STAFF
    role_tag: Optional[StaffRoleTag] = None
    organization_id: Optional[int] = Field(None, description="Only honoured for super admins")


class UserUpdate(BaseModel):
    name: Optional[str] = None
    password: Optional[str] = Field(None, min_length=8)
    role: Optional[UserRole] = None
    role_tag: Optional[StaffRoleTag] = None
    is_active: Optional[bool] = None


class User(DomainModel):
    """User as exposed by the API (never carries the password hash)"""
    id: int
    organization_id: Optional[int] = None
    email: str
    name: Optional[str] = None
    role: str
    role_tag: Optional[str] = None
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
