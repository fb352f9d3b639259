"""
Tenants and users
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON, ForeignKey
from sqlalchemy.orm import relationship

from smartstore.core.database import Base
from smartstore.models.base import TimestampMixin


class Organization(TimestampMixin, Base):
    """A tenant: every business row belongs to exactly one organization"""
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), nullable=False, unique=True, index=True)
    plan = Column(String(50), default="starter", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    settings = Column(JSON, default=dict)

    users = relationship("User", back_populates="organization")


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Nullable only for platform super admins
    organization_id = Column(Integer, ForeignKey("organizations.id"), index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255))
    password_hash = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, default="STAFF", index=True)
    role_tag = Column(String(50))
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime)

    organization = relationship("Organization", back_populates="users")
