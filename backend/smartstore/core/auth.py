"""
Authentication dependencies for SmartStore Backend
Issues and validates HS256 JWT bearer tokens and exposes user context + RBAC checks
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext
from pydantic import BaseModel

from smartstore.core.config import settings
from smartstore.core.exceptions import ValidationError
from smartstore.core.rbac import Permission, UserRole, has_any_permission


# Security scheme for bearer tokens
security = HTTPBearer(auto_error=False)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class TokenUser(BaseModel):
    """User data extracted from JWT token"""
    id: int
    email: str
    name: Optional[str] = None
    role: str = UserRole.CUSTOMER.value
    role_tag: Optional[str] = None
    organization_id: Optional[int] = None

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN.value


class AuthConfig:
    """Authentication configuration"""

    @staticmethod
    def get_auth_secret() -> str:
        """Get the AUTH_SECRET from settings"""
        secret = settings.AUTH_SECRET
        if not secret:
            raise ValueError("AUTH_SECRET environment variable is not set")
        return secret

    @staticmethod
    def get_jwt_algorithm() -> str:
        return "HS256"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


def create_access_token(user, expires_minutes: Optional[int] = None) -> str:
    """
    Issue a signed token for a User row (or anything with the same attributes)

    Payload:
    {
        "sub": "12",
        "email": "admin@demo.store",
        "name": "Demo Admin",
        "role": "TENANT_ADMIN",
        "role_tag": null,
        "organization_id": 3,
        "iat": 1234567890,
        "exp": 1234567890
    }
    """
    now = datetime.now(timezone.utc)
    lifetime = expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "role_tag": user.role_tag,
        "organization_id": user.organization_id,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=lifetime)).timestamp()),
    }
    return jwt.encode(payload, AuthConfig.get_auth_secret(), algorithm=AuthConfig.get_jwt_algorithm())


def decode_token(token: str) -> dict:
    """Decode and validate a bearer token, mapping failures to 401"""
    try:
        return jwt.decode(
            token,
            AuthConfig.get_auth_secret(),
            algorithms=[AuthConfig.get_jwt_algorithm()],
            options={"verify_aud": False},
        )
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )


def _user_from_payload(payload: dict) -> Optional[TokenUser]:
    user_id = payload.get("sub") or payload.get("id")
    email = payload.get("email")
    if not user_id or not email:
        return None

    return TokenUser(
        id=int(user_id),
        email=email,
        name=payload.get("name"),
        role=payload.get("role", UserRole.CUSTOMER.value),
        role_tag=payload.get("role_tag"),
        organization_id=payload.get("organization_id"),
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenUser:
    """
    Dependency that extracts and validates the current user from JWT.

    Usage:
        @router.get("/protected")
        async def protected_route(user: TokenUser = Depends(get_current_user)):
            return {"message": f"Hello {user.email}"}
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = _user_from_payload(decode_token(credentials.credentials))
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload: missing user id or email",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[TokenUser]:
    """Optional authentication - returns None if no valid token provided."""
    if not credentials:
        return None

    try:
        return _user_from_payload(decode_token(credentials.credentials))
    except HTTPException:
        return None


def require_permission(*permissions: Permission):
    """
    Dependency factory for permission-based access control.
    The caller needs at least one of the listed permissions.

    Usage:
        @router.delete("/{product_id}")
        async def delete_product(
            product_id: int,
            user: TokenUser = Depends(require_permission(Permission.PRODUCT_DELETE))
        ):
            ...
    """
    async def permission_checker(user: TokenUser = Depends(get_current_user)) -> TokenUser:
        if not has_any_permission(user.role, permissions, user.role_tag):
            required = ", ".join(p.value for p in permissions)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required permission: {required}",
            )
        return user

    return permission_checker


def require_role(*roles: UserRole):
    """Dependency factory restricting an endpoint to explicit roles"""
    allowed = {r.value for r in roles}

    async def role_checker(user: TokenUser = Depends(get_current_user)) -> TokenUser:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join(sorted(allowed))}, your role: {user.role}",
            )
        return user

    return role_checker


def get_organization_scope(user: TokenUser, requested_org_id: Optional[int] = None) -> int:
    """
    Resolve which organization a request operates on.

    Super admins may act on any organization (explicit id or their own);
    everyone else is pinned to the organization in their token.
    """
    if user.is_super_admin and requested_org_id is not None:
        return requested_org_id

    if user.organization_id is None:
        raise ValidationError("User must belong to an organization")

    return user.organization_id


# Convenience dependencies for common role requirements
require_super_admin = require_role(UserRole.SUPER_ADMIN)
