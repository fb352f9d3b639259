"""
Authentication API endpoints
- Login (rate limited per client IP)
- Current user and permissions
- User management inside an organization
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from smartstore.core.auth import TokenUser, get_current_user, get_organization_scope, require_permission
from smartstore.core.database import get_db
from smartstore.core.rate_limit import login_rate_limit
from smartstore.core.rbac import Permission, UserRole, get_accessible_routes, permissions_for
from smartstore.domain.organization import LoginRequest, User, UserCreate, UserUpdate
from smartstore.services.user_service import UserService

router = APIRouter()


@router.post("/login")
async def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    _: None = Depends(login_rate_limit),
):
    """Exchange email + password for a bearer token"""
    result = UserService(db).authenticate(credentials.email, credentials.password)
    return {
        "status": "success",
        "data": {
            "access_token": result["access_token"],
            "token_type": result["token_type"],
            "user": User.model_validate(result["user"]).to_dict(),
        },
    }


@router.get("/me")
async def me(user: TokenUser = Depends(get_current_user)):
    return {"status": "success", "data": user.model_dump()}


@router.get("/permissions")
async def my_permissions(user: TokenUser = Depends(get_current_user)):
    """Permissions and dashboard routes available to the caller"""
    return {
        "status": "success",
        "data": {
            "role": user.role,
            "role_tag": user.role_tag,
            "permissions": sorted(p.value for p in permissions_for(user.role, user.role_tag)),
            "routes": get_accessible_routes(user.role, user.role_tag),
        },
    }


# =============================================================================
# Users
# =============================================================================

@router.get("/users")
async def list_users(
    role: Optional[str] = Query(None, description="Filter by role"),
    is_active: Optional[bool] = Query(None),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(require_permission(Permission.USER_READ)),
    db: Session = Depends(get_db),
):
    service = UserService(db, get_organization_scope(user, organization_id))
    users, total = service.list_users(role, is_active, limit, offset)
    return {
        "status": "success",
        "total": total,
        "limit": limit,
        "offset": offset,
        "count": len(users),
        "data": [User.model_validate(u).to_dict() for u in users],
    }


@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    user: TokenUser = Depends(require_permission(Permission.USER_CREATE)),
    db: Session = Depends(get_db),
):
    organization_id = None if data.role == UserRole.SUPER_ADMIN else get_organization_scope(user, data.organization_id)
    created = UserService(db, organization_id).create_user(data, actor=user)
    return {"status": "success", "data": User.model_validate(created).to_dict()}


@router.patch("/users/{user_id}")
async def update_user(
    user_id: int,
    data: UserUpdate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.USER_UPDATE)),
    db: Session = Depends(get_db),
):
    service = UserService(db, get_organization_scope(user, organization_id))
    updated = service.update_user(user_id, data, actor=user)
    return {"status": "success", "data": User.model_validate(updated).to_dict()}
