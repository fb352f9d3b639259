"""
Workflow template repository

An organization sees public templates plus the private ones it owns.
"""
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from smartstore.core.exceptions import NotFoundError
from smartstore.models import WorkflowTemplate


class WorkflowTemplateRepository:
    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id

    def _visible(self):
        return self.db.query(WorkflowTemplate).filter(or_(
            WorkflowTemplate.is_public.is_(True),
            WorkflowTemplate.organization_id == self.organization_id,
        ))

    def find_visible(self, category: Optional[str] = None) -> List[WorkflowTemplate]:
        query = self._visible()
        if category:
            query = query.filter(WorkflowTemplate.category == category)
        return query.order_by(WorkflowTemplate.usage_count.desc(), WorkflowTemplate.id).all()

    def get(self, template_id: int) -> WorkflowTemplate:
        template = self._visible().filter(WorkflowTemplate.id == template_id).first()
        if template is None:
            raise NotFoundError("Workflow template", template_id)
        return template

    def add(self, template: WorkflowTemplate) -> WorkflowTemplate:
        template.organization_id = self.organization_id
        self.db.add(template)
        self.db.flush()
        return template
