"""
Role-Based Access Control tables

Roles map to permission sets; STAFF users are further extended by a role tag
(inventory manager, finance officer, ...).
"""
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set


class UserRole(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    TENANT_ADMIN = "TENANT_ADMIN"
    STAFF = "STAFF"
    CUSTOMER = "CUSTOMER"


class StaffRoleTag(str, Enum):
    INVENTORY_MANAGER = "inventory_manager"
    SALES_EXECUTIVE = "sales_executive"
    FINANCE_OFFICER = "finance_officer"
    MARKETING_MANAGER = "marketing_manager"
    SUPPORT_AGENT = "support_agent"
    HR_MANAGER = "hr_manager"


class Permission(str, Enum):
    # Products
    PRODUCT_CREATE = "product.create"
    PRODUCT_READ = "product.read"
    PRODUCT_UPDATE = "product.update"
    PRODUCT_DELETE = "product.delete"

    # Orders
    ORDER_CREATE = "order.create"
    ORDER_READ = "order.read"
    ORDER_UPDATE = "order.update"
    ORDER_DELETE = "order.delete"
    ORDER_CANCEL = "order.cancel"

    # Customers
    CUSTOMER_CREATE = "customer.create"
    CUSTOMER_READ = "customer.read"
    CUSTOMER_UPDATE = "customer.update"
    CUSTOMER_DELETE = "customer.delete"

    # Finance
    FINANCE_READ = "finance.read"
    FINANCE_CREATE = "finance.create"
    FINANCE_UPDATE = "finance.update"
    FINANCE_DELETE = "finance.delete"

    # Inventory
    INVENTORY_READ = "inventory.read"
    INVENTORY_UPDATE = "inventory.update"
    INVENTORY_ADJUST = "inventory.adjust"

    # Users
    USER_CREATE = "user.create"
    USER_READ = "user.read"
    USER_UPDATE = "user.update"
    USER_DELETE = "user.delete"

    # Reports
    REPORTS_VIEW = "reports.view"
    REPORTS_EXPORT = "reports.export"

    # Settings
    SETTINGS_VIEW = "settings.view"
    SETTINGS_UPDATE = "settings.update"

    # Marketing
    MARKETING_READ = "marketing.read"
    MARKETING_MANAGE = "marketing.manage"

    # Integrations and automation
    INTEGRATIONS_MANAGE = "integrations.manage"
    WORKFLOWS_READ = "workflows.read"
    WORKFLOWS_MANAGE = "workflows.manage"

    # Tenant management (Super Admin only)
    TENANT_CREATE = "tenant.create"
    TENANT_READ = "tenant.read"
    TENANT_UPDATE = "tenant.update"
    TENANT_DELETE = "tenant.delete"

    # Billing (Super Admin only)
    BILLING_VIEW = "billing.view"
    BILLING_MANAGE = "billing.manage"


_SUPER_ADMIN_ONLY = {
    Permission.TENANT_CREATE,
    Permission.TENANT_READ,
    Permission.TENANT_UPDATE,
    Permission.TENANT_DELETE,
    Permission.BILLING_VIEW,
    Permission.BILLING_MANAGE,
}

ROLE_PERMISSIONS: Dict[UserRole, Set[Permission]] = {
    UserRole.SUPER_ADMIN: set(Permission),
    UserRole.TENANT_ADMIN: set(Permission) - _SUPER_ADMIN_ONLY,
    UserRole.STAFF: {
        Permission.PRODUCT_READ,
        Permission.ORDER_READ,
        Permission.ORDER_CREATE,
        Permission.CUSTOMER_READ,
        Permission.INVENTORY_READ,
        Permission.REPORTS_VIEW,
    },
    UserRole.CUSTOMER: {
        Permission.PRODUCT_READ,
        Permission.ORDER_CREATE,
        Permission.ORDER_READ,  # own orders only
        Permission.CUSTOMER_UPDATE,  # own profile only
    },
}

STAFF_ROLE_PERMISSIONS: Dict[StaffRoleTag, Set[Permission]] = {
    StaffRoleTag.INVENTORY_MANAGER: {
        Permission.PRODUCT_CREATE,
        Permission.PRODUCT_READ,
        Permission.PRODUCT_UPDATE,
        Permission.INVENTORY_READ,
        Permission.INVENTORY_UPDATE,
        Permission.INVENTORY_ADJUST,
        Permission.REPORTS_VIEW,
    },
    StaffRoleTag.SALES_EXECUTIVE: {
        Permission.ORDER_CREATE,
        Permission.ORDER_READ,
        Permission.ORDER_UPDATE,
        Permission.CUSTOMER_CREATE,
        Permission.CUSTOMER_READ,
        Permission.CUSTOMER_UPDATE,
        Permission.PRODUCT_READ,
    },
    StaffRoleTag.FINANCE_OFFICER: {
        Permission.FINANCE_READ,
        Permission.FINANCE_CREATE,
        Permission.FINANCE_UPDATE,
        Permission.ORDER_READ,
        Permission.REPORTS_VIEW,
        Permission.REPORTS_EXPORT,
    },
    StaffRoleTag.MARKETING_MANAGER: {
        Permission.CUSTOMER_READ,
        Permission.PRODUCT_READ,
        Permission.REPORTS_VIEW,
        Permission.ORDER_READ,
        Permission.MARKETING_READ,
        Permission.MARKETING_MANAGE,
    },
    StaffRoleTag.SUPPORT_AGENT: {
        Permission.CUSTOMER_READ,
        Permission.CUSTOMER_UPDATE,
        Permission.ORDER_READ,
        Permission.ORDER_UPDATE,
    },
    StaffRoleTag.HR_MANAGER: {
        Permission.USER_READ,
        Permission.USER_UPDATE,
        Permission.REPORTS_VIEW,
    },
}

# Dashboard route -> permissions (any of them grants access)
ROUTE_PERMISSIONS: Dict[str, List[Permission]] = {
    "/products": [Permission.PRODUCT_READ],
    "/products/new": [Permission.PRODUCT_CREATE],
    "/orders": [Permission.ORDER_READ],
    "/orders/new": [Permission.ORDER_CREATE],
    "/customers": [Permission.CUSTOMER_READ],
    "/customers/new": [Permission.CUSTOMER_CREATE],
    "/inventory": [Permission.INVENTORY_READ],
    "/warehouses": [Permission.INVENTORY_READ],
    "/couriers": [Permission.ORDER_READ],
    "/expenses": [Permission.FINANCE_READ],
    "/campaigns": [Permission.MARKETING_READ],
    "/reports": [Permission.REPORTS_VIEW],
    "/integrations": [Permission.INTEGRATIONS_MANAGE],
    "/workflows": [Permission.WORKFLOWS_READ],
    "/settings": [Permission.SETTINGS_VIEW],
    "/tenants": [Permission.TENANT_READ],
    "/admin": [Permission.TENANT_READ, Permission.BILLING_VIEW],
}

DASHBOARD_ROUTES = [
    "/dashboard",
    "/products",
    "/orders",
    "/customers",
    "/inventory",
    "/warehouses",
    "/couriers",
    "/expenses",
    "/campaigns",
    "/reports",
    "/integrations",
    "/workflows",
    "/settings",
    "/tenants",
    "/admin",
]


def _coerce_role(role) -> Optional[UserRole]:
    try:
        return UserRole(role)
    except ValueError:
        return None


def _coerce_tag(role_tag) -> Optional[StaffRoleTag]:
    if not role_tag:
        return None
    try:
        return StaffRoleTag(role_tag)
    except ValueError:
        return None


def permissions_for(role, role_tag: Optional[str] = None) -> Set[Permission]:
    """All permissions granted to a role (plus its staff tag, if any)"""
    user_role = _coerce_role(role)
    if user_role is None:
        return set()

    granted = set(ROLE_PERMISSIONS[user_role])
    tag = _coerce_tag(role_tag)
    if user_role == UserRole.STAFF and tag is not None:
        granted |= STAFF_ROLE_PERMISSIONS[tag]
    return granted


def has_permission(role, permission, role_tag: Optional[str] = None) -> bool:
    if _coerce_role(role) == UserRole.SUPER_ADMIN:
        return True
    return Permission(permission) in permissions_for(role, role_tag)


def has_any_permission(role, permissions: Iterable, role_tag: Optional[str] = None) -> bool:
    return any(has_permission(role, p, role_tag) for p in permissions)


def has_all_permissions(role, permissions: Iterable, role_tag: Optional[str] = None) -> bool:
    return all(has_permission(role, p, role_tag) for p in permissions)


def can_access_route(role, route: str, role_tag: Optional[str] = None) -> bool:
    required = ROUTE_PERMISSIONS.get(route)
    if not required:
        # Routes without a mapping are open to every signed-in user
        return True
    return has_any_permission(role, required, role_tag)


def get_accessible_routes(role, role_tag: Optional[str] = None) -> List[str]:
    return [route for route in DASHBOARD_ROUTES if can_access_route(role, route, role_tag)]
