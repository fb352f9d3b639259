"""
Couriers and deliveries
"""
from sqlalchemy import Column, Integer, String, Boolean, Text, Numeric, ForeignKey, DateTime
from sqlalchemy.orm import relationship

from smartstore.core.database import Base
from smartstore.models.base import TimestampMixin


class Courier(TimestampMixin, Base):
    __tablename__ = "couriers"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(50))
    email = Column(String(255))
    vehicle_type = Column(String(50))
    is_online = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    rating = Column(Numeric(3, 2), default=5, nullable=False)
    total_deliveries = Column(Integer, default=0, nullable=False)

    deliveries = relationship("Delivery", back_populates="courier")


class Delivery(TimestampMixin, Base):
    __tablename__ = "deliveries"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    courier_id = Column(Integer, ForeignKey("couriers.id"), nullable=False, index=True)
    status = Column(String(50), default="ASSIGNED", nullable=False, index=True)
    tracking_number = Column(String(100), nullable=False, index=True)
    address = Column(Text)
    notes = Column(Text)
    delivered_at = Column(DateTime)

    courier = relationship("Courier", back_populates="deliveries")
    order = relationship("Order")
