"""
Pytest fixtures and configuration for SmartStore Backend tests

Every test gets a fresh in-memory SQLite database seeded with the demo
organization, plus a TestClient whose get_db dependency points at it.

Author: SmartStore
Date: 2025-11-12
"""
import os

# Settings are read at import time
os.environ["AUTH_SECRET"] = "test-secret-key-for-smartstore"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["WORKFLOW_MAX_DELAY_SECONDS"] = "1"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from smartstore.core.auth import create_access_token
from smartstore.core.database import get_db, init_db
from smartstore.core.rate_limit import rate_limiter
from smartstore.main import app
from smartstore.models import Customer, Organization, Product, User
from smartstore.services.seed_service import DEMO_ORG_SLUG, DEMO_PASSWORD, SeedService


@pytest.fixture(scope="function")
def engine():
    """
    Provides an in-memory database shared by every connection of one test

    Scope: function (new database per test)
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db(engine):
    """Provides a SQLAlchemy session on the test database"""
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture(scope="function")
def seeded(db):
    """Demo organization with users, catalog, customers and orders"""
    SeedService(db, DEMO_PASSWORD).seed()
    return db


@pytest.fixture
def demo_org(seeded) -> Organization:
    return seeded.query(Organization).filter(Organization.slug == DEMO_ORG_SLUG).one()


@pytest.fixture
def other_org(seeded) -> Organization:
    """A second tenant with one product and one customer of its own"""
    org = Organization(name="Other Shop", slug="other-shop", plan="starter", settings={}, is_active=True)
    seeded.add(org)
    seeded.flush()
    seeded.add(Product(organization_id=org.id, sku="OTH-001", name="Other Widget", price=10, stock_quantity=5, min_stock=0))
    seeded.add(Customer(organization_id=org.id, name="Olga Other", email="olga@other.shop"))
    seeded.commit()
    return org


@pytest.fixture
def client(seeded):
    """TestClient bound to the seeded session"""
    def override_get_db():
        yield seeded

    app.dependency_overrides[get_db] = override_get_db
    rate_limiter.reset()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(seeded):
    """
    Builds bearer headers for a seeded user by email

    Usage:
        response = client.get("/api/v1/products/", headers=auth_headers("admin@demo.store"))
    """
    def _headers(email: str) -> dict:
        user = seeded.query(User).filter(User.email == email).one()
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _headers


@pytest.fixture
def product(seeded):
    """Looks up a seeded product by SKU"""
    return lambda sku: seeded.query(Product).filter(Product.sku == sku).one()


@pytest.fixture
def customer(seeded):
    """Looks up a seeded customer by email"""
    return lambda email: seeded.query(Customer).filter(Customer.email == email).one()
