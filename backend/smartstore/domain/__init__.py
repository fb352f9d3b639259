"""
Domain Layer - Business Entities

Pydantic models for request validation and API responses.
Read models are built straight from ORM rows (from_attributes=True).
"""
from smartstore.domain.product import Product, ProductCreate, ProductUpdate, InventoryMovement
from smartstore.domain.customer import Customer, CustomerCreate, CustomerUpdate
from smartstore.domain.order import Order, OrderItem, OrderCreate, OrderUpdate, OrderStatus, PaymentStatus

__all__ = [
    'Product',
    'ProductCreate',
    'ProductUpdate',
    'InventoryMovement',
    'Customer',
    'CustomerCreate',
    'CustomerUpdate',
    'Order',
    'OrderItem',
    'OrderCreate',
    'OrderUpdate',
    'OrderStatus',
    'PaymentStatus',
]
