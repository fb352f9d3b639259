"""
SmartStore - Backend API
Multi-tenant e-commerce administration for SmartStore SaaS
"""
import logging
import time
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

# Load environment variables
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from smartstore.api import (  # noqa: E402
    auth,
    campaigns,
    couriers,
    customers,
    expenses,
    integrations,
    marketplace,
    omnichannel,
    orders,
    organizations,
    personalization,
    products,
    reports,
    subscriptions,
    warehouses,
    workflows,
)
from smartstore.core.auth import TokenUser, get_current_user, get_organization_scope  # noqa: E402
from smartstore.core.config import settings  # noqa: E402
from smartstore.core.database import check_database, get_db  # noqa: E402
from smartstore.core.exceptions import SmartStoreError  # noqa: E402
from smartstore.services.integration_service import IntegrationService  # noqa: E402

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Crear aplicación FastAPI
app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["*"],
)


@app.exception_handler(SmartStoreError)
async def smartstore_error_handler(request: Request, exc: SmartStoreError):
    """Render service errors as {status: error, code, message, details}"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Include API routers
app.include_router(auth.router, prefix="/api/v1/auth", tags=["Auth"])
app.include_router(organizations.router, prefix="/api/v1/organizations", tags=["Organizations"])
app.include_router(products.router, prefix="/api/v1/products", tags=["Products"])
app.include_router(customers.router, prefix="/api/v1/customers", tags=["Customers"])
app.include_router(orders.router, prefix="/api/v1/orders", tags=["Orders"])
app.include_router(warehouses.router, prefix="/api/v1/warehouses", tags=["Warehouses"])
app.include_router(couriers.router, prefix="/api/v1/couriers", tags=["Logistics"])
app.include_router(expenses.router, prefix="/api/v1/expenses", tags=["Finance"])
app.include_router(campaigns.router, prefix="/api/v1/campaigns", tags=["Marketing"])
app.include_router(reports.router, prefix="/api/v1/reports", tags=["Reports"])
app.include_router(integrations.router, prefix="/api/v1/integrations", tags=["Integrations"])
app.include_router(marketplace.router, prefix="/api/v1/marketplace", tags=["Marketplace"])
app.include_router(subscriptions.router, prefix="/api/v1/subscriptions", tags=["Subscriptions"])
app.include_router(omnichannel.router, prefix="/api/v1/omnichannel", tags=["Omnichannel"])
app.include_router(personalization.router, prefix="/api/v1/personalization", tags=["Personalization"])
app.include_router(workflows.router, prefix="/api/v1/workflows", tags=["Workflows"])


@app.get("/")
async def root():
    """Root endpoint - API status check"""
    return {
        "message": "SmartStore API",
        "status": "online",
        "version": settings.API_VERSION,
        "description": settings.API_DESCRIPTION,
    }


@app.get("/health")
async def health(db: Session = Depends(get_db)):
    """Health check endpoint for monitoring - tests database connectivity"""
    start_time = time.time()
    database = check_database(db)
    total_latency_ms = round((time.time() - start_time) * 1000, 2)

    return {
        "status": "healthy" if database["status"] == "connected" else "degraded",
        "service": "smartstore-api",
        "version": settings.API_VERSION,
        "database": database,
        "total_latency_ms": total_latency_ms,
    }


@app.get("/api/v1/status")
async def api_status(
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Integration status for the caller's organization"""
    integrations_status = {
        entry["provider"]: {
            "configured": entry["configured"],
            "active": bool(entry.get("is_active")),
        }
        for entry in IntegrationService(db, get_organization_scope(user, organization_id)).list()
    }
    return {
        "status": "success",
        "organization_id": get_organization_scope(user, organization_id),
        "integrations": integrations_status,
    }
