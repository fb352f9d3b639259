"""
Workflows API Endpoints
Automation definitions, execution (sync or in the background), history,
analytics and shared templates
"""
import logging
from datetime import date, datetime, time
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Query, status
from sqlalchemy.orm import Session

from smartstore.core.auth import TokenUser, get_organization_scope, require_permission
from smartstore.core.database import SessionLocal, get_db
from smartstore.core.rbac import Permission
from smartstore.domain.workflow import (
    ExecuteRequest,
    ExecutionStatus,
    FromTemplateRequest,
    Workflow,
    WorkflowCreate,
    WorkflowExecution,
    WorkflowExecutionDetail,
    WorkflowTemplate,
    WorkflowTemplateCreate,
    WorkflowUpdate,
)
from smartstore.repositories import WorkflowExecutionRepository
from smartstore.services.workflow_engine import WorkflowEngine
from smartstore.services.workflow_service import WorkflowService

logger = logging.getLogger(__name__)

router = APIRouter()


def run_execution_in_background(organization_id: int, execution_id: int) -> None:
    """Walk an already-started execution in a session of its own"""
    db = SessionLocal()
    try:
        execution = WorkflowExecutionRepository(db, organization_id).get(execution_id)
        WorkflowEngine(db, organization_id).run(execution)
    except Exception as e:
        logger.error(f"Background execution {execution_id} crashed: {e}")
        raise
    finally:
        db.close()


# =============================================================================
# Templates
# =============================================================================

@router.get("/templates")
async def list_templates(
    category: Optional[str] = Query(None),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.WORKFLOWS_READ)),
    db: Session = Depends(get_db),
):
    templates = WorkflowService(db, get_organization_scope(user, organization_id)).list_templates(category)
    return {
        "status": "success",
        "count": len(templates),
        "data": [WorkflowTemplate.model_validate(t).to_dict() for t in templates],
    }


@router.post("/templates", status_code=status.HTTP_201_CREATED)
async def create_template(
    data: WorkflowTemplateCreate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.WORKFLOWS_MANAGE)),
    db: Session = Depends(get_db),
):
    service = WorkflowService(db, get_organization_scope(user, organization_id))
    template = service.create_template(data, can_publish=user.is_super_admin)
    return {"status": "success", "data": WorkflowTemplate.model_validate(template).to_dict()}


@router.post("/templates/{template_id}/use", status_code=status.HTTP_201_CREATED)
async def create_from_template(
    template_id: int,
    data: Optional[FromTemplateRequest] = None,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.WORKFLOWS_MANAGE)),
    db: Session = Depends(get_db),
):
    service = WorkflowService(db, get_organization_scope(user, organization_id))
    workflow = service.create_from_template(template_id, data.name if data else None)
    return {"status": "success", "data": Workflow.model_validate(workflow).to_dict()}


# =============================================================================
# Events and executions
# =============================================================================

@router.post("/events/{event}")
async def trigger_event(
    event: str,
    payload: Optional[Dict[str, Any]] = Body(None),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.WORKFLOWS_MANAGE)),
    db: Session = Depends(get_db),
):
    """Run every active workflow whose triggers include `event` (e.g. order.created)"""
    executions = WorkflowService(db, get_organization_scope(user, organization_id)).trigger_event(event, payload or {})
    return {
        "status": "success",
        "event": event,
        "count": len(executions),
        "data": [WorkflowExecution.model_validate(e).to_dict() for e in executions],
    }


@router.get("/executions/{execution_id}")
async def get_execution(
    execution_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.WORKFLOWS_READ)),
    db: Session = Depends(get_db),
):
    """Execution with its per-node log"""
    execution = WorkflowService(db, get_organization_scope(user, organization_id)).get_execution(execution_id)
    return {"status": "success", "data": WorkflowExecutionDetail.model_validate(execution).to_dict()}


# =============================================================================
# Definitions
# =============================================================================

@router.get("")
async def list_workflows(
    is_active: Optional[bool] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.WORKFLOWS_READ)),
    db: Session = Depends(get_db),
):
    workflows, total = WorkflowService(db, get_organization_scope(user, organization_id)).list_workflows(is_active, limit, offset)
    return {
        "status": "success",
        "total": total,
        "limit": limit,
        "offset": offset,
        "count": len(workflows),
        "data": [Workflow.model_validate(w).to_dict() for w in workflows],
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_workflow(
    data: WorkflowCreate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.WORKFLOWS_MANAGE)),
    db: Session = Depends(get_db),
):
    workflow = WorkflowService(db, get_organization_scope(user, organization_id)).create_workflow(data)
    return {"status": "success", "data": Workflow.model_validate(workflow).to_dict()}


@router.get("/{workflow_id}")
async def get_workflow(
    workflow_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.WORKFLOWS_READ)),
    db: Session = Depends(get_db),
):
    workflow = WorkflowService(db, get_organization_scope(user, organization_id)).get_workflow(workflow_id)
    return {"status": "success", "data": Workflow.model_validate(workflow).to_dict()}


@router.patch("/{workflow_id}")
async def update_workflow(
    workflow_id: int,
    data: WorkflowUpdate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.WORKFLOWS_MANAGE)),
    db: Session = Depends(get_db),
):
    """Changing nodes or connections re-validates the graph and bumps the version"""
    workflow = WorkflowService(db, get_organization_scope(user, organization_id)).update_workflow(workflow_id, data)
    return {"status": "success", "data": Workflow.model_validate(workflow).to_dict()}


@router.delete("/{workflow_id}")
async def delete_workflow(
    workflow_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.WORKFLOWS_MANAGE)),
    db: Session = Depends(get_db),
):
    WorkflowService(db, get_organization_scope(user, organization_id)).delete_workflow(workflow_id)
    return {"status": "success", "message": f"Workflow {workflow_id} deleted"}


@router.post("/{workflow_id}/execute")
async def execute_workflow(
    workflow_id: int,
    background_tasks: BackgroundTasks,
    request: Optional[ExecuteRequest] = None,
    background: bool = Query(False, description="Return immediately and run the workflow in the background"),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.WORKFLOWS_MANAGE)),
    db: Session = Depends(get_db),
):
    org_id = get_organization_scope(user, organization_id)
    service = WorkflowService(db, org_id)
    trigger_data = request.trigger_data if request else {}

    if background:
        execution = service.engine().start(workflow_id, trigger_data)
        background_tasks.add_task(run_execution_in_background, org_id, execution.id)
        return {
            "status": "success",
            "message": "Workflow execution started in background",
            "data": WorkflowExecution.model_validate(execution).to_dict(),
        }

    execution = service.execute(workflow_id, trigger_data)
    return {"status": "success", "data": WorkflowExecutionDetail.model_validate(execution).to_dict()}


@router.get("/{workflow_id}/executions")
async def list_executions(
    workflow_id: int,
    status_filter: Optional[ExecutionStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.WORKFLOWS_READ)),
    db: Session = Depends(get_db),
):
    service = WorkflowService(db, get_organization_scope(user, organization_id))
    executions, total = service.list_executions(
        workflow_id, status_filter.value if status_filter else None, page, limit,
    )
    return {
        "status": "success",
        "total": total,
        "page": page,
        "limit": limit,
        "count": len(executions),
        "data": [WorkflowExecution.model_validate(e).to_dict() for e in executions],
    }


@router.get("/{workflow_id}/analytics")
async def workflow_analytics(
    workflow_id: int,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.WORKFLOWS_READ)),
    db: Session = Depends(get_db),
):
    service = WorkflowService(db, get_organization_scope(user, organization_id))
    analytics = service.get_analytics(
        workflow_id,
        datetime.combine(start_date, time.min) if start_date else None,
        datetime.combine(end_date, time.max) if end_date else None,
    )
    return {"status": "success", "data": analytics}
