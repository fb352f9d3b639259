"""
Personalization API Endpoints
Customer profiles, product recommendations and A/B experiments
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from smartstore.core.auth import TokenUser, get_organization_scope, require_permission
from smartstore.core.database import get_db
from smartstore.core.rbac import Permission
from smartstore.domain.personalization import (
    Experiment,
    ExperimentCreate,
    Interaction,
    InteractionCreate,
    VariantAssignment,
)
from smartstore.services.personalization_service import PersonalizationService

router = APIRouter()


@router.get("/customers/{customer_id}/profile")
async def customer_profile(
    customer_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_READ)),
    db: Session = Depends(get_db),
):
    """Purchase history, preferences, segments and churn estimate"""
    service = PersonalizationService(db, get_organization_scope(user, organization_id))
    return {"status": "success", "data": service.build_profile(customer_id)}


@router.get("/customers/{customer_id}/recommendations")
async def recommendations(
    customer_id: int,
    limit: int = Query(10, ge=1, le=50),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_READ)),
    db: Session = Depends(get_db),
):
    items = PersonalizationService(db, get_organization_scope(user, organization_id)).recommend(customer_id, limit)
    return {"status": "success", "count": len(items), "data": items}


@router.get("/products/{product_id}/similar")
async def similar_products(
    product_id: int,
    limit: int = Query(5, ge=1, le=50),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.PRODUCT_READ)),
    db: Session = Depends(get_db),
):
    items = PersonalizationService(db, get_organization_scope(user, organization_id)).similar_products(product_id, limit)
    return {"status": "success", "count": len(items), "data": items}


@router.post("/interactions", status_code=status.HTTP_201_CREATED)
async def track_interaction(
    data: InteractionCreate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_UPDATE)),
    db: Session = Depends(get_db),
):
    service = PersonalizationService(db, get_organization_scope(user, organization_id))
    interaction = service.track_interaction(data.customer_id, data.product_id, data.type.value)
    return {"status": "success", "data": Interaction.model_validate(interaction).to_dict()}


# =============================================================================
# Experiments
# =============================================================================

@router.get("/experiments")
async def list_experiments(
    status_filter: Optional[str] = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.MARKETING_READ)),
    db: Session = Depends(get_db),
):
    service = PersonalizationService(db, get_organization_scope(user, organization_id))
    experiments, total = service.list_experiments(status_filter, limit, offset)
    return {
        "status": "success",
        "total": total,
        "limit": limit,
        "offset": offset,
        "count": len(experiments),
        "data": [Experiment.model_validate(e).to_dict() for e in experiments],
    }


@router.post("/experiments", status_code=status.HTTP_201_CREATED)
async def create_experiment(
    data: ExperimentCreate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.MARKETING_MANAGE)),
    db: Session = Depends(get_db),
):
    experiment = PersonalizationService(db, get_organization_scope(user, organization_id)).create_experiment(data)
    return {"status": "success", "data": Experiment.model_validate(experiment).to_dict()}


@router.get("/experiments/{experiment_id}")
async def get_experiment(
    experiment_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.MARKETING_READ)),
    db: Session = Depends(get_db),
):
    experiment = PersonalizationService(db, get_organization_scope(user, organization_id)).get_experiment(experiment_id)
    return {"status": "success", "data": Experiment.model_validate(experiment).to_dict()}


@router.get("/experiments/{experiment_id}/assignment")
async def assign_variant(
    experiment_id: int,
    customer_id: int = Query(...),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_READ)),
    db: Session = Depends(get_db),
):
    """Deterministic: the same customer always lands in the same variant"""
    service = PersonalizationService(db, get_organization_scope(user, organization_id))
    assignment = VariantAssignment(**service.assign_variant(experiment_id, customer_id))
    return {"status": "success", "data": assignment.model_dump()}
