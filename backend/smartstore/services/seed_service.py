"""
Seed Service
Idempotent demo data for development databases and tests

Every entity is looked up by its natural key (slug, email, sku, code,
order number) first, so running the seed twice changes nothing.

Author: SmartStore
Date: 2025-11-12
"""
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy.orm import Session

from smartstore.core.auth import hash_password
from smartstore.core.rbac import StaffRoleTag, UserRole
from smartstore.domain.order import OrderCreate, OrderItemCreate, OrderStatus
from smartstore.models import (
    Category,
    Courier,
    Customer,
    Expense,
    Organization,
    Product,
    SubscriptionPlan,
    User,
    Warehouse,
    Workflow,
)
from smartstore.repositories import (
    CategoryRepository,
    CourierRepository,
    CustomerRepository,
    ExpenseRepository,
    OrderRepository,
    OrganizationRepository,
    PlanRepository,
    ProductRepository,
    UserRepository,
    WarehouseRepository,
    WorkflowRepository,
)
from smartstore.services.order_service import OrderService

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "SmartStore2025!"
DEMO_ORG_SLUG = "demo-store"

CATEGORIES = ["Electronics", "Home", "Apparel"]

PRODUCTS = [
    # sku, name, brand, category, price, cost, stock, min_stock
    ("ELEC-001", "Wireless Headphones", "Sonic", "Electronics", "89.90", "45.00", 40, 5),
    ("ELEC-002", "Bluetooth Speaker", "Sonic", "Electronics", "59.90", "28.00", 25, 5),
    ("ELEC-003", "USB-C Charger", "Voltix", "Electronics", "19.90", "7.50", 120, 20),
    ("HOME-001", "Ceramic Mug", "Casa", "Home", "12.50", "4.00", 80, 10),
    ("HOME-002", "Desk Lamp", "Casa", "Home", "34.00", "15.00", 3, 5),
    ("APP-001", "Cotton T-Shirt", "Norte", "Apparel", "24.00", "9.00", 60, 10),
]

CUSTOMERS = [
    ("Ana Torres", "ana@example.com", "+15550000001", "Santiago", ["vip"]),
    ("Bruno Diaz", "bruno@example.com", "+15550000002", "Valparaiso", []),
    ("Carla Rojas", "carla@example.com", "+15550000003", "Concepcion", ["newsletter"]),
]

STAFF_EMAILS = {
    StaffRoleTag.INVENTORY_MANAGER: "inventory@demo.store",
    StaffRoleTag.SALES_EXECUTIVE: "sales@demo.store",
    StaffRoleTag.FINANCE_OFFICER: "finance@demo.store",
    StaffRoleTag.MARKETING_MANAGER: "marketing@demo.store",
    StaffRoleTag.SUPPORT_AGENT: "support@demo.store",
    StaffRoleTag.HR_MANAGER: "hr@demo.store",
}

SAMPLE_WORKFLOW = {
    "name": "High value order alert",
    "description": "Notifies the team when a large order arrives",
    "triggers": ["order.created"],
    "nodes": [
        {"id": "start", "type": "TRIGGER", "name": "Order created", "config": {}},
        {"id": "check", "type": "CONDITION", "name": "Total over 100", "config": {"condition": "{{order_total}} > 100"}},
        {
            "id": "notify",
            "type": "ACTION",
            "name": "Notify team",
            "config": {"action": "SEND_NOTIFICATION", "message": "Order {{order_number}} for {{order_total}}"},
        },
    ],
    "connections": [
        {"id": "c1", "from_node_id": "start", "to_node_id": "check"},
        {"id": "c2", "from_node_id": "check", "to_node_id": "notify", "condition": "true"},
    ],
}


class SeedService:
    """Creates the demo organization and its data; returns counts of what was added"""

    def __init__(self, db: Session, password: str = DEMO_PASSWORD):
        self.db = db
        self.password_hash = hash_password(password)
        self.created: Dict[str, int] = {}

    def _count(self, key: str) -> None:
        self.created[key] = self.created.get(key, 0) + 1

    def seed(self) -> Dict[str, int]:
        organization = self._organization()
        org_id = organization.id

        self._users(org_id)
        categories = self._categories(org_id)
        products = self._products(org_id, categories)
        customers = self._customers(org_id)
        self._warehouses(org_id)
        self._couriers(org_id)
        self._orders(org_id, products, customers)
        self._expenses(org_id)
        self._plan(org_id)
        self._workflow(org_id)

        self.db.commit()
        logger.info(f"Seed finished for {DEMO_ORG_SLUG}: {self.created or 'nothing new'}")
        return dict(self.created)

    # ------------------------------------------------------------------

    def _organization(self) -> Organization:
        organizations = OrganizationRepository(self.db)
        organization = organizations.find_by_slug(DEMO_ORG_SLUG)
        if organization is None:
            organization = organizations.add(Organization(
                name="Demo Store", slug=DEMO_ORG_SLUG, plan="professional", settings={}, is_active=True,
            ))
            self._count("organizations")
        return organization

    def _user(self, org_id: Optional[int], email: str, name: str, role: UserRole,
              role_tag: Optional[StaffRoleTag] = None) -> User:
        users = UserRepository(self.db, org_id)
        user = users.find_by_email(email)
        if user is None:
            user = User(
                organization_id=org_id,
                email=email,
                name=name,
                password_hash=self.password_hash,
                role=role.value,
                role_tag=role_tag.value if role_tag else None,
                is_active=True,
            )
            self.db.add(user)
            self.db.flush()
            self._count("users")
        return user

    def _users(self, org_id: int) -> None:
        self._user(None, "superadmin@smartstore.dev", "Platform Admin", UserRole.SUPER_ADMIN)
        self._user(org_id, "admin@demo.store", "Demo Admin", UserRole.TENANT_ADMIN)
        for tag, email in STAFF_EMAILS.items():
            self._user(org_id, email, tag.value.replace("_", " ").title(), UserRole.STAFF, tag)
        self._user(org_id, "customer@demo.store", "Demo Customer", UserRole.CUSTOMER)

    def _categories(self, org_id: int) -> Dict[str, Category]:
        repository = CategoryRepository(self.db, org_id)
        existing = {c.name: c for c in repository.find_all_ordered()}
        for name in CATEGORIES:
            if name not in existing:
                existing[name] = repository.add(Category(name=name))
                self._count("categories")
        return existing

    def _products(self, org_id: int, categories: Dict[str, Category]) -> Dict[str, Product]:
        repository = ProductRepository(self.db, org_id)
        products = {}
        for sku, name, brand, category, price, cost, stock, min_stock in PRODUCTS:
            product = repository.find_by_sku(sku)
            if product is None:
                product = repository.add(Product(
                    sku=sku,
                    name=name,
                    brand=brand,
                    category_id=categories[category].id,
                    price=Decimal(price),
                    cost=Decimal(cost),
                    stock_quantity=stock,
                    min_stock=min_stock,
                    is_active=True,
                    tags=[],
                    source="manual",
                ))
                self._count("products")
            products[sku] = product
        return products

    def _customers(self, org_id: int) -> Dict[str, Customer]:
        repository = CustomerRepository(self.db, org_id)
        customers = {}
        for name, email, phone, city, tags in CUSTOMERS:
            customer = repository.find_by_email(email)
            if customer is None:
                customer = repository.add(Customer(name=name, email=email, phone=phone, city=city, country="CL", tags=tags))
                self._count("customers")
            customers[email] = customer
        return customers

    def _warehouses(self, org_id: int) -> None:
        repository = WarehouseRepository(self.db, org_id)
        for code, name, city in (("MAIN", "Main Warehouse", "Santiago"), ("NORTH", "North Depot", "Antofagasta")):
            if repository.find_by_code(code) is None:
                repository.add(Warehouse(code=code, name=name, city=city, is_active=True))
                self._count("warehouses")

    def _couriers(self, org_id: int) -> None:
        repository = CourierRepository(self.db, org_id)
        existing, _ = repository.find_all()
        names = {c.name for c in existing}
        for name, vehicle in (("Rapido Express", "motorcycle"), ("Carga Segura", "van")):
            if name not in names:
                repository.add(Courier(name=name, vehicle_type=vehicle, is_online=True, is_active=True))
                self._count("couriers")

    def _orders(self, org_id: int, products: Dict[str, Product], customers: Dict[str, Customer]) -> None:
        orders = OrderRepository(self.db, org_id)
        service = OrderService(self.db, org_id)
        demo_orders = [
            ("ORD-DEMO-0001", "ana@example.com", [("ELEC-001", 1), ("ELEC-003", 2)], OrderStatus.DELIVERED),
            ("ORD-DEMO-0002", "bruno@example.com", [("HOME-001", 4)], OrderStatus.CONFIRMED),
            ("ORD-DEMO-0003", "ana@example.com", [("APP-001", 2)], OrderStatus.PENDING),
        ]
        for number, email, lines, status in demo_orders:
            if orders.find_by_number(number):
                continue
            service.create_order(
                OrderCreate(
                    customer_id=customers[email].id,
                    order_number=number,
                    status=status,
                    items=[OrderItemCreate(product_id=products[sku].id, quantity=qty) for sku, qty in lines],
                ),
                commit=False,
            )
            self._count("orders")

    def _expenses(self, org_id: int) -> None:
        repository = ExpenseRepository(self.db, org_id)
        existing, _ = repository.find_all()
        if existing:
            return
        today = date.today()
        for amount, category, description, days_ago in (
            ("1200.00", "rent", "Warehouse rent", 20),
            ("180.50", "shipping", "Courier invoices", 10),
            ("95.00", "marketing", "Social ads", 5),
        ):
            repository.add(Expense(
                amount=Decimal(amount),
                category=category,
                description=description,
                expense_date=today - timedelta(days=days_ago),
            ))
            self._count("expenses")

    def _plan(self, org_id: int) -> None:
        repository = PlanRepository(self.db, org_id)
        if any(p.name == "Premium Club" for p in repository.find_all_ordered(active_only=False)):
            return
        repository.add(SubscriptionPlan(
            name="Premium Club",
            description="Free shipping and early access",
            price=Decimal("9.90"),
            currency="USD",
            interval="month",
            interval_count=1,
            trial_period_days=14,
            features=["free_shipping", "early_access"],
            limits={"orders": 20},
            is_active=True,
            is_popular=True,
        ))
        self._count("subscription_plans")

    def _workflow(self, org_id: int) -> None:
        repository = WorkflowRepository(self.db, org_id)
        existing, _ = repository.find_all()
        if any(w.name == SAMPLE_WORKFLOW["name"] for w in existing):
            return
        repository.add(Workflow(version=1, is_active=True, **SAMPLE_WORKFLOW))
        self._count("workflows")
