"""
Customers API Endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from smartstore.core.auth import TokenUser, get_organization_scope, require_permission
from smartstore.core.database import get_db
from smartstore.core.rbac import Permission
from smartstore.domain.customer import Customer, CustomerCreate, CustomerUpdate
from smartstore.domain.order import Order
from smartstore.services.customer_service import CustomerService

router = APIRouter()


@router.get("/")
async def get_customers(
    search: Optional[str] = Query(None, description="Search name, email, phone or city"),
    tag: Optional[str] = Query(None, description="Only customers carrying this tag"),
    is_active: Optional[bool] = Query(None),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_READ)),
    db: Session = Depends(get_db),
):
    service = CustomerService(db, get_organization_scope(user, organization_id))
    customers, total = service.list_customers(search=search, tag=tag, is_active=is_active, limit=limit, offset=offset)
    return {
        "status": "success",
        "total": total,
        "limit": limit,
        "offset": offset,
        "count": len(customers),
        "data": [Customer.model_validate(c).to_dict() for c in customers],
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_customer(
    data: CustomerCreate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_CREATE)),
    db: Session = Depends(get_db),
):
    customer = CustomerService(db, get_organization_scope(user, organization_id)).create_customer(data)
    return {"status": "success", "data": Customer.model_validate(customer).to_dict()}


@router.get("/{customer_id}")
async def get_customer(
    customer_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_READ)),
    db: Session = Depends(get_db),
):
    """Customer with their 10 most recent orders"""
    service = CustomerService(db, get_organization_scope(user, organization_id))
    customer = service.get_customer(customer_id)
    data = Customer.model_validate(customer).to_dict()
    data["recent_orders"] = [Order.model_validate(o).to_dict() for o in service.get_recent_orders(customer_id)]
    return {"status": "success", "data": data}


@router.patch("/{customer_id}")
async def update_customer(
    customer_id: int,
    data: CustomerUpdate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_UPDATE)),
    db: Session = Depends(get_db),
):
    customer = CustomerService(db, get_organization_scope(user, organization_id)).update_customer(customer_id, data)
    return {"status": "success", "data": Customer.model_validate(customer).to_dict()}


@router.delete("/{customer_id}")
async def delete_customer(
    customer_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_DELETE)),
    db: Session = Depends(get_db),
):
    CustomerService(db, get_organization_scope(user, organization_id)).delete_customer(customer_id)
    return {"status": "success", "message": f"Customer {customer_id} deleted"}
