"""
Unit tests for the role/permission tables

Author: SmartStore
Date: 2025-11-12
"""
from smartstore.core.rbac import (
    Permission,
    can_access_route,
    get_accessible_routes,
    has_all_permissions,
    has_any_permission,
    has_permission,
    permissions_for,
)


class TestRolePermissions:
    """Test permissions granted per role"""

    def test_super_admin_has_everything(self):
        for permission in Permission:
            assert has_permission("SUPER_ADMIN", permission)

    def test_tenant_admin_lacks_tenant_and_billing(self):
        assert has_permission("TENANT_ADMIN", Permission.PRODUCT_DELETE)
        assert has_permission("TENANT_ADMIN", Permission.WORKFLOWS_MANAGE)
        assert not has_permission("TENANT_ADMIN", Permission.TENANT_CREATE)
        assert not has_permission("TENANT_ADMIN", Permission.BILLING_MANAGE)

    def test_plain_staff_is_read_mostly(self):
        assert has_permission("STAFF", Permission.PRODUCT_READ)
        assert has_permission("STAFF", Permission.ORDER_CREATE)
        assert not has_permission("STAFF", Permission.PRODUCT_UPDATE)
        assert not has_permission("STAFF", Permission.FINANCE_READ)

    def test_customer_permissions(self):
        assert permissions_for("CUSTOMER") == {
            Permission.PRODUCT_READ,
            Permission.ORDER_CREATE,
            Permission.ORDER_READ,
            Permission.CUSTOMER_UPDATE,
        }

    def test_unknown_role_has_nothing(self):
        assert permissions_for("JANITOR") == set()
        assert not has_permission("JANITOR", Permission.PRODUCT_READ)


class TestStaffRoleTags:
    """Test that staff tags extend the base STAFF set"""

    def test_inventory_manager_can_adjust_stock(self):
        assert has_permission("STAFF", Permission.INVENTORY_ADJUST, "inventory_manager")
        assert not has_permission("STAFF", Permission.INVENTORY_ADJUST)

    def test_finance_officer_can_export_but_not_delete(self):
        assert has_permission("STAFF", Permission.REPORTS_EXPORT, "finance_officer")
        assert has_permission("STAFF", Permission.FINANCE_CREATE, "finance_officer")
        assert not has_permission("STAFF", Permission.FINANCE_DELETE, "finance_officer")

    def test_tag_is_ignored_for_non_staff(self):
        assert not has_permission("CUSTOMER", Permission.INVENTORY_ADJUST, "inventory_manager")

    def test_unknown_tag_falls_back_to_staff(self):
        assert permissions_for("STAFF", "astronaut") == permissions_for("STAFF")

    def test_any_and_all(self):
        perms = [Permission.MARKETING_MANAGE, Permission.FINANCE_READ]
        assert has_any_permission("STAFF", perms, "marketing_manager")
        assert not has_all_permissions("STAFF", perms, "marketing_manager")


class TestRouteAccess:
    """Test dashboard route gating"""

    def test_unmapped_route_is_open(self):
        assert can_access_route("CUSTOMER", "/dashboard")

    def test_admin_route_requires_tenant_or_billing(self):
        assert can_access_route("SUPER_ADMIN", "/admin")
        assert not can_access_route("TENANT_ADMIN", "/admin")

    def test_accessible_routes_for_finance_officer(self):
        routes = get_accessible_routes("STAFF", "finance_officer")

        assert "/expenses" in routes
        assert "/reports" in routes
        assert "/campaigns" not in routes
        assert "/tenants" not in routes
