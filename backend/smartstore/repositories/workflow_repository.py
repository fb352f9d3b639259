"""
Workflow repositories
"""
from datetime import datetime
from typing import List, Optional, Tuple

from smartstore.models import Workflow, WorkflowExecution
from smartstore.repositories.base import OrganizationScopedRepository


class WorkflowRepository(OrganizationScopedRepository[Workflow]):
    model = Workflow
    entity_name = "Workflow"

    def find_all(self, is_active: Optional[bool] = None, limit: int = 100, offset: int = 0):
        query = self._query()
        if is_active is not None:
            query = query.filter(Workflow.is_active == is_active)
        return self._paginate(query, limit, offset, Workflow.id.desc())

    def find_active_for_event(self, event: str) -> List[Workflow]:
        active = self._query().filter(Workflow.is_active.is_(True)).order_by(Workflow.id).all()
        return [w for w in active if event in (w.triggers or [])]


class WorkflowExecutionRepository(OrganizationScopedRepository[WorkflowExecution]):
    model = WorkflowExecution
    entity_name = "Workflow execution"

    def find_all(
        self,
        workflow_id: Optional[int] = None,
        status: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[WorkflowExecution], int]:
        query = self._query()
        if workflow_id is not None:
            query = query.filter(WorkflowExecution.workflow_id == workflow_id)
        if status:
            query = query.filter(WorkflowExecution.status == status)
        return self._paginate(query, limit, offset, WorkflowExecution.id.desc())

    def find_in_range(
        self,
        workflow_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[WorkflowExecution]:
        query = self._query().filter(WorkflowExecution.workflow_id == workflow_id)
        if start:
            query = query.filter(WorkflowExecution.started_at >= start)
        if end:
            query = query.filter(WorkflowExecution.started_at <= end)
        return query.all()
