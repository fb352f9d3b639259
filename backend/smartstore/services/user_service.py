"""
User Service
Login and user management inside an organization
"""
import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from smartstore.core.auth import TokenUser, create_access_token, hash_password, verify_password
from smartstore.core.exceptions import AuthenticationError, ConflictError, PermissionDeniedError, ValidationError
from smartstore.core.rbac import UserRole
from smartstore.domain.organization import UserCreate, UserUpdate
from smartstore.models import User
from smartstore.models.base import utcnow
from smartstore.repositories import OrganizationRepository, UserRepository

logger = logging.getLogger(__name__)


def _check_role_tag(role: str, role_tag: Optional[str]) -> Optional[str]:
    if role_tag and role != UserRole.STAFF.value:
        raise ValidationError("Only STAFF users can carry a role tag")
    return role_tag


class UserService:
    """
    Service for users of one organization

    Handles:
    - Password login (bcrypt) and token issuing
    - Listing, creating and updating users
    - Super admin promotion rules
    """

    def __init__(self, db: Session, organization_id: Optional[int] = None):
        self.db = db
        self.organization_id = organization_id
        self.users = UserRepository(db, organization_id)

    def authenticate(self, email: str, password: str) -> Dict:
        """
        Check credentials and issue an access token

        Raises:
            AuthenticationError: unknown email, wrong password or inactive account
        """
        user = self.users.find_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login for {email}")
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            logger.warning(f"Login attempt on inactive account {email}")
            raise AuthenticationError("Account is inactive")

        user.last_login_at = utcnow()
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User {user.id} logged in")
        return {"access_token": create_access_token(user), "token_type": "bearer", "user": user}

    def list_users(self, role: Optional[str] = None, is_active: Optional[bool] = None,
                   limit: int = 100, offset: int = 0) -> Tuple[List[User], int]:
        return self.users.find_all(role, is_active, limit, offset)

    def get_user(self, user_id: int) -> User:
        return self.users.get(user_id)

    def create_user(self, data: UserCreate, actor: TokenUser) -> User:
        role = data.role.value
        if role == UserRole.SUPER_ADMIN.value and not actor.is_super_admin:
            raise PermissionDeniedError("Only a super admin can create another super admin")
        if self.users.find_by_email(data.email):
            raise ConflictError(f"A user with email {data.email} already exists", {"email": data.email})

        organization_id = None if role == UserRole.SUPER_ADMIN.value else self.organization_id
        if organization_id is not None:
            OrganizationRepository(self.db).get(organization_id)

        user = User(
            organization_id=organization_id,
            email=data.email.lower(),
            name=data.name,
            password_hash=hash_password(data.password),
            role=role,
            role_tag=_check_role_tag(role, data.role_tag.value if data.role_tag else None),
            is_active=True,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"User {user.email} created with role {role} by {actor.email}")
        return user

    def update_user(self, user_id: int, data: UserUpdate, actor: TokenUser) -> User:
        user = self.users.get(user_id)
        changes = data.model_dump(exclude_unset=True)

        if "role" in changes and changes["role"] is not None:
            new_role = UserRole(changes["role"]).value
            if new_role == UserRole.SUPER_ADMIN.value and not actor.is_super_admin:
                raise PermissionDeniedError("Only a super admin can grant the super admin role")
            user.role = new_role
            if new_role != UserRole.STAFF.value:
                user.role_tag = None

        if "role_tag" in changes:
            tag = changes["role_tag"]
            user.role_tag = _check_role_tag(user.role, tag.value if tag else None)

        if changes.get("password"):
            user.password_hash = hash_password(changes["password"])
        if "name" in changes:
            user.name = changes["name"]
        if "is_active" in changes and changes["is_active"] is not None:
            if user.id == actor.id and not changes["is_active"]:
                raise ValidationError("You cannot deactivate your own account")
            user.is_active = changes["is_active"]

        self.db.commit()
        self.db.refresh(user)
        return user
