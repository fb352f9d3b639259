"""
Workflow automation: definitions, executions and per-node logs
"""
from sqlalchemy import Column, Integer, String, Boolean, Text, JSON, ForeignKey, DateTime
from sqlalchemy.orm import relationship

from smartstore.core.database import Base
from smartstore.models.base import TimestampMixin, utcnow


class Workflow(TimestampMixin, Base):
    __tablename__ = "workflows"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    version = Column(Integer, default=1, nullable=False)
    nodes = Column(JSON, nullable=False, default=list)
    connections = Column(JSON, nullable=False, default=list)
    triggers = Column(JSON, default=list)
    is_active = Column(Boolean, default=True, nullable=False)

    executions = relationship("WorkflowExecution", back_populates="workflow", cascade="all, delete-orphan")


class WorkflowExecution(Base):
    __tablename__ = "workflow_executions"

    id = Column(Integer, primary_key=True, index=True)
    workflow_id = Column(Integer, ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    status = Column(String(20), default="RUNNING", nullable=False, index=True)
    current_node_id = Column(String(100))
    data = Column(JSON, default=dict)
    error = Column(Text)
    steps_executed = Column(Integer, default=0, nullable=False)
    started_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    completed_at = Column(DateTime)

    workflow = relationship("Workflow", back_populates="executions")
    logs = relationship(
        "WorkflowLog",
        back_populates="execution",
        order_by="WorkflowLog.id",
        cascade="all, delete-orphan",
    )


class WorkflowLog(Base):
    __tablename__ = "workflow_logs"

    id = Column(Integer, primary_key=True, index=True)
    execution_id = Column(Integer, ForeignKey("workflow_executions.id", ondelete="CASCADE"), nullable=False, index=True)
    node_id = Column(String(100), nullable=False)
    node_name = Column(String(255))
    node_type = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False)
    message = Column(Text)
    data = Column(JSON, default=dict)
    duration_ms = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    execution = relationship("WorkflowExecution", back_populates="logs")


class WorkflowTemplate(TimestampMixin, Base):
    """Starting points for new workflows; public ones are visible to every organization"""
    __tablename__ = "workflow_templates"

    id = Column(Integer, primary_key=True, index=True)
    # Owner; NULL for templates shipped with the platform
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    category = Column(String(100), index=True)
    definition = Column(JSON, nullable=False, default=dict)
    tags = Column(JSON, default=list)
    usage_count = Column(Integer, default=0, nullable=False)
    is_public = Column(Boolean, default=False, nullable=False)
