"""
Workflow Domain Models

Nodes and connections are stored as JSON on the workflow row; these models
validate their shape on the way in.
"""
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, Field, ConfigDict

from smartstore.domain.common import DomainModel


class NodeType(str, Enum):
    TRIGGER = "TRIGGER"
    ACTION = "ACTION"
    CONDITION = "CONDITION"
    DELAY = "DELAY"
    WEBHOOK = "WEBHOOK"
    EMAIL = "EMAIL"
    SMS = "SMS"


class ActionType(str, Enum):
    CREATE_ORDER = "CREATE_ORDER"
    UPDATE_INVENTORY = "UPDATE_INVENTORY"
    UPDATE_CUSTOMER = "UPDATE_CUSTOMER"
    SEND_NOTIFICATION = "SEND_NOTIFICATION"
    ASSIGN_TASK = "ASSIGN_TASK"


class ExecutionStatus(str, Enum):
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class LogStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class WorkflowNode(BaseModel):
    # Editors attach layout info (position, ...) which is kept as-is
    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1)
    type: str
    name: Optional[str] = None
    config: Dict[str, Any] = Field(default_factory=dict)


class WorkflowConnection(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    from_node_id: str
    to_node_id: str
    condition: Optional[str] = None
    label: Optional[str] = None


class WorkflowCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    nodes: List[WorkflowNode] = Field(..., min_length=1)
    connections: List[WorkflowConnection] = Field(default_factory=list)
    triggers: List[str] = Field(default_factory=list)
    is_active: bool = True


class WorkflowDefinition(BaseModel):
    """Graph stored in a template"""
    nodes: List[WorkflowNode] = Field(..., min_length=1)
    connections: List[WorkflowConnection] = Field(default_factory=list)
    triggers: List[str] = Field(default_factory=list)


class WorkflowUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    nodes: Optional[List[WorkflowNode]] = None
    connections: Optional[List[WorkflowConnection]] = None
    triggers: Optional[List[str]] = None
    is_active: Optional[bool] = None


class Workflow(DomainModel):
    id: int
    organization_id: int
    name: str
    description: Optional[str] = None
    version: int
    nodes: List[Dict[str, Any]]
    connections: List[Dict[str, Any]]
    triggers: Optional[List[str]] = None
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


class WorkflowLog(DomainModel):
    id: int
    node_id: str
    node_name: Optional[str] = None
    node_type: str
    status: str
    message: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    duration_ms: int
    created_at: datetime


class WorkflowExecution(DomainModel):
    id: int
    workflow_id: int
    status: str
    current_node_id: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    steps_executed: int
    started_at: datetime
    completed_at: Optional[datetime] = None


class WorkflowExecutionDetail(WorkflowExecution):
    logs: List[WorkflowLog] = Field(default_factory=list)


class ExecuteRequest(BaseModel):
    trigger_data: Dict[str, Any] = Field(default_factory=dict)


class WorkflowTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    definition: Dict[str, Any] = Field(..., description="{nodes, connections, triggers}")
    tags: List[str] = Field(default_factory=list)
    is_public: bool = False


class WorkflowTemplate(DomainModel):
    id: int
    organization_id: Optional[int] = None
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    definition: Dict[str, Any]
    tags: Optional[List[str]] = None
    usage_count: int
    is_public: bool
    created_at: datetime


class FromTemplateRequest(BaseModel):
    name: Optional[str] = None
