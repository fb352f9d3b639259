"""
Workflow Service
Definitions, executions, analytics and templates

Running a workflow is delegated to WorkflowEngine.

Author: SmartStore
Date: 2025-11-11
"""
import logging
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from smartstore.core.exceptions import PermissionDeniedError, ValidationError
from smartstore.domain.workflow import (
    ExecutionStatus,
    WorkflowCreate,
    WorkflowDefinition,
    WorkflowTemplateCreate,
    WorkflowUpdate,
)
from smartstore.models import Workflow, WorkflowExecution, WorkflowTemplate
from smartstore.repositories import WorkflowExecutionRepository, WorkflowRepository, WorkflowTemplateRepository
from smartstore.services.workflow_engine import WorkflowEngine, validate_definition

logger = logging.getLogger(__name__)


class WorkflowService:
    """
    Service for workflow automation of one organization

    Handles:
    - Workflow CRUD with definition validation (version bumps on graph changes)
    - Execution on demand and on events
    - Execution history and analytics
    - Shared templates
    """

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.workflows = WorkflowRepository(db, organization_id)
        self.executions = WorkflowExecutionRepository(db, organization_id)
        self.templates = WorkflowTemplateRepository(db, organization_id)

    def engine(self, max_steps: Optional[int] = None) -> WorkflowEngine:
        return WorkflowEngine(self.db, self.organization_id, max_steps=max_steps)

    # ------------------------------------------------------------------
    # Definitions
    # ------------------------------------------------------------------

    def list_workflows(self, is_active: Optional[bool] = None, limit: int = 100, offset: int = 0) -> Tuple[List[Workflow], int]:
        return self.workflows.find_all(is_active, limit, offset)

    def get_workflow(self, workflow_id: int) -> Workflow:
        return self.workflows.get(workflow_id)

    def create_workflow(self, data: WorkflowCreate) -> Workflow:
        nodes = [n.model_dump() for n in data.nodes]
        connections = [c.model_dump(exclude_none=True) for c in data.connections]
        validate_definition(nodes, connections)

        workflow = self.workflows.add(Workflow(
            name=data.name,
            description=data.description,
            version=1,
            nodes=nodes,
            connections=connections,
            triggers=list(data.triggers),
            is_active=data.is_active,
        ))
        self.db.commit()
        self.db.refresh(workflow)
        logger.info(f"Workflow {workflow.id} '{workflow.name}' created (org {self.organization_id})")
        return workflow

    def update_workflow(self, workflow_id: int, data: WorkflowUpdate) -> Workflow:
        workflow = self.workflows.get(workflow_id)
        updates = data.model_dump(exclude_unset=True)

        graph_changed = "nodes" in updates or "connections" in updates
        if graph_changed:
            nodes = [n.model_dump() for n in data.nodes] if data.nodes is not None else workflow.nodes
            connections = (
                [c.model_dump(exclude_none=True) for c in data.connections]
                if data.connections is not None else workflow.connections
            )
            validate_definition(nodes, connections)
            workflow.nodes = nodes
            workflow.connections = connections
            workflow.version = (workflow.version or 1) + 1

        for field in ("name", "description", "is_active"):
            if field in updates:
                setattr(workflow, field, updates[field])
        if "triggers" in updates:
            workflow.triggers = list(updates["triggers"] or [])

        self.db.commit()
        self.db.refresh(workflow)
        return workflow

    def delete_workflow(self, workflow_id: int) -> None:
        workflow = self.workflows.get(workflow_id)
        self.workflows.delete(workflow)
        self.db.commit()

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute(self, workflow_id: int, trigger_data: Optional[Dict[str, Any]] = None) -> WorkflowExecution:
        return self.engine().execute(workflow_id, trigger_data)

    def trigger_event(self, event: str, data: Optional[Dict[str, Any]] = None) -> List[WorkflowExecution]:
        """Run every active workflow listening to `event`"""
        workflows = self.workflows.find_active_for_event(event)
        logger.info(f"Event '{event}' (org {self.organization_id}) matched {len(workflows)} workflow(s)")
        return [self.engine().execute(w.id, data) for w in workflows]

    def list_executions(
        self,
        workflow_id: Optional[int] = None,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[WorkflowExecution], int]:
        if workflow_id is not None:
            self.workflows.get(workflow_id)
        offset = (max(page, 1) - 1) * limit
        return self.executions.find_all(workflow_id, status, limit, offset)

    def get_execution(self, execution_id: int) -> WorkflowExecution:
        return self.executions.get(execution_id)

    def get_analytics(
        self,
        workflow_id: int,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        workflow = self.workflows.get(workflow_id)
        executions = self.executions.find_in_range(workflow.id, start_date, end_date)

        by_status = Counter(e.status for e in executions)
        durations = [
            (e.completed_at - e.started_at).total_seconds() * 1000
            for e in executions
            if e.status == ExecutionStatus.COMPLETED.value and e.completed_at and e.started_at
        ]
        total = len(executions)
        successful = by_status.get(ExecutionStatus.COMPLETED.value, 0)
        failed = by_status.get(ExecutionStatus.FAILED.value, 0)

        return {
            "workflow_id": workflow.id,
            "total_executions": total,
            "successful_executions": successful,
            "failed_executions": failed,
            "success_rate": round(successful / total * 100, 2) if total else 0.0,
            "average_duration_ms": round(sum(durations) / len(durations), 2) if durations else 0.0,
            "by_status": dict(by_status),
            "start_date": start_date.isoformat() if start_date else None,
            "end_date": end_date.isoformat() if end_date else None,
        }

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_definition(definition: Dict[str, Any]) -> Dict[str, Any]:
        """Check a template definition and return it normalized to the stored node/connection shape"""
        try:
            parsed = WorkflowDefinition.model_validate(definition or {})
        except PydanticValidationError as e:
            errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
            raise ValidationError("Invalid workflow definition", {"errors": errors})

        nodes = [n.model_dump() for n in parsed.nodes]
        connections = [c.model_dump(exclude_none=True) for c in parsed.connections]
        validate_definition(nodes, connections)
        return {"nodes": nodes, "connections": connections, "triggers": list(parsed.triggers)}

    def create_template(self, data: WorkflowTemplateCreate, can_publish: bool = False) -> WorkflowTemplate:
        if data.is_public and not can_publish:
            raise PermissionDeniedError("Only platform administrators can publish templates")
        definition = self._parse_definition(data.definition)

        template = self.templates.add(WorkflowTemplate(
            name=data.name,
            description=data.description,
            category=data.category,
            definition=definition,
            tags=list(data.tags),
            is_public=data.is_public,
            usage_count=0,
        ))
        self.db.commit()
        self.db.refresh(template)
        return template

    def list_templates(self, category: Optional[str] = None) -> List[WorkflowTemplate]:
        return self.templates.find_visible(category)

    def create_from_template(self, template_id: int, name: Optional[str] = None) -> Workflow:
        template = self.templates.get(template_id)
        definition = self._parse_definition(template.definition)

        workflow = self.workflows.add(Workflow(
            name=name or template.name,
            description=template.description,
            version=1,
            nodes=definition["nodes"],
            connections=definition["connections"],
            triggers=definition["triggers"],
            is_active=True,
        ))
        template.usage_count = (template.usage_count or 0) + 1
        self.db.commit()
        self.db.refresh(workflow)
        logger.info(f"Workflow {workflow.id} created from template {template.id}")
        return workflow
