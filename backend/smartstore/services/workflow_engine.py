"""
Workflow Engine
Walks a workflow definition from its TRIGGER node, one node at a time

Every node run is written to workflow_logs and committed right away, so a
failing node never takes the history of the earlier ones with it.

Author: SmartStore
Date: 2025-11-11
"""
import logging
import time
from typing import Any, Callable, Dict, List, Optional

import httpx
from sqlalchemy.orm import Session

from smartstore.core.config import settings
from smartstore.core.exceptions import IntegrationError, SmartStoreError, ValidationError, WorkflowError
from smartstore.domain.order import OrderCreate
from smartstore.domain.product import MovementType
from smartstore.domain.workflow import ActionType, ExecutionStatus, LogStatus, NodeType
from smartstore.models import Workflow, WorkflowExecution, WorkflowLog
from smartstore.models.base import utcnow
from smartstore.repositories import CustomerRepository, WorkflowExecutionRepository, WorkflowRepository
from smartstore.services.expression_evaluator import (
    PLACEHOLDER_PATTERN,
    ExpressionError,
    evaluate_condition,
    render_template,
    resolve_path,
    validate_expression,
)
from smartstore.services.integration_service import IntegrationService
from smartstore.services.order_service import OrderService
from smartstore.services.product_service import ProductService

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
CUSTOMER_UPDATABLE_FIELDS = ("name", "phone", "address", "city", "tags")

# Errors that fail a node (and are retried) instead of crashing the run
NODE_ERRORS = (SmartStoreError, ExpressionError, httpx.HTTPError, ValueError, TypeError, KeyError)


class NodeFailure(Exception):
    """A node failed on every attempt"""


# ============================================================================
# Definition validation
# ============================================================================

def validate_definition(nodes: List[Dict[str, Any]], connections: List[Dict[str, Any]]) -> None:
    """
    Check a workflow graph before it is stored

    Raises:
        ValidationError: with every problem found listed in details["errors"]
    """
    errors = []
    node_ids = [n.get("id") for n in nodes]
    nodes_by_id = {n.get("id"): n for n in nodes if isinstance(n.get("id"), str)}

    for index, node_id in enumerate(node_ids):
        if not isinstance(node_id, str) or not node_id:
            errors.append(f"Node #{index + 1}: id must be a non-empty string")

    duplicates = sorted({str(i) for i in node_ids if node_ids.count(i) > 1})
    if duplicates:
        errors.append(f"Duplicate node ids: {', '.join(duplicates)}")

    known_types = {t.value for t in NodeType}
    known_actions = {a.value for a in ActionType}
    for node in nodes:
        node_type = node.get("type")
        config = node.get("config") or {}
        retries = config.get("retries", 0)
        if isinstance(retries, bool) or not isinstance(retries, int) or not 0 <= retries <= MAX_RETRIES:
            errors.append(f"Node {node.get('id')}: retries must be an integer from 0 to {MAX_RETRIES}")
        if node_type not in known_types:
            errors.append(f"Node {node.get('id')}: unknown type {node_type}")
        elif node_type == NodeType.ACTION.value and config.get("action") not in known_actions:
            errors.append(f"Node {node.get('id')}: unknown action {config.get('action')}")
        elif node_type == NodeType.CONDITION.value:
            if not config.get("condition"):
                errors.append(f"Node {node.get('id')}: condition is required")
            else:
                try:
                    validate_expression(config["condition"])
                except ExpressionError as e:
                    errors.append(f"Node {node.get('id')}: {e}")
        elif node_type == NodeType.WEBHOOK.value and not config.get("url"):
            errors.append(f"Node {node.get('id')}: url is required")

    targets = set()
    for connection in connections:
        source, target = connection.get("from_node_id"), connection.get("to_node_id")
        for end in (source, target):
            if end not in nodes_by_id:
                errors.append(f"Connection {connection.get('id') or f'{source}->{target}'} references unknown node {end}")
        targets.add(target)

        condition = connection.get("condition")
        source_node = nodes_by_id.get(source)
        if condition is not None and source_node and source_node.get("type") == NodeType.CONDITION.value:
            if str(condition).lower() not in ("true", "false"):
                errors.append(f"Connection from {source}: condition must be 'true' or 'false'")

    triggers = [n for n in nodes if n.get("type") == NodeType.TRIGGER.value]
    if len(triggers) != 1:
        errors.append(f"Workflow needs exactly one TRIGGER node, found {len(triggers)}")
    elif triggers[0].get("id") in targets:
        errors.append("TRIGGER node cannot have incoming connections")

    if errors:
        raise ValidationError("Invalid workflow definition", {"errors": errors})


# ============================================================================
# Engine
# ============================================================================

class WorkflowEngine:
    """
    Executes workflows of one organization

    Handles:
    - Execution rows and per-node logs
    - Branching on CONDITION results
    - Retries and the max-steps guard
    """

    def __init__(self, db: Session, organization_id: int, max_steps: Optional[int] = None):
        self.db = db
        self.organization_id = organization_id
        self.max_steps = max_steps or settings.WORKFLOW_MAX_STEPS
        self.workflows = WorkflowRepository(db, organization_id)
        self.executions = WorkflowExecutionRepository(db, organization_id)

        self.handlers: Dict[str, Callable[[Workflow, Dict[str, Any], Dict[str, Any]], Dict[str, Any]]] = {
            NodeType.TRIGGER.value: self._run_trigger,
            NodeType.ACTION.value: self._run_action,
            NodeType.CONDITION.value: self._run_condition,
            NodeType.DELAY.value: self._run_delay,
            NodeType.WEBHOOK.value: self._run_webhook,
            NodeType.EMAIL.value: self._run_email,
            NodeType.SMS.value: self._run_sms,
        }

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def start(self, workflow_id: int, trigger_data: Optional[Dict[str, Any]] = None) -> WorkflowExecution:
        """Create the RUNNING execution row; run() does the walking"""
        workflow = self.workflows.get(workflow_id)
        if not workflow.is_active:
            raise WorkflowError(f"Workflow {workflow_id} is not active")

        execution = self.executions.add(WorkflowExecution(
            workflow_id=workflow.id,
            status=ExecutionStatus.RUNNING.value,
            data=dict(trigger_data or {}),
            steps_executed=0,
        ))
        self.db.commit()
        self.db.refresh(execution)
        return execution

    def execute(self, workflow_id: int, trigger_data: Optional[Dict[str, Any]] = None) -> WorkflowExecution:
        return self.run(self.start(workflow_id, trigger_data))

    def run(self, execution: WorkflowExecution) -> WorkflowExecution:
        """Walk a started execution; it always ends COMPLETED or FAILED"""
        state: Dict[str, Any] = dict(execution.data or {})
        try:
            error = self._walk(execution, state)
        except Exception as e:
            self.db.rollback()
            logger.exception(f"Workflow execution {execution.id} crashed")
            error = f"Unexpected error: {e}"
        return self._finish(execution, state, error)

    def _walk(self, execution: WorkflowExecution, state: Dict[str, Any]) -> Optional[str]:
        """Visit nodes from the trigger on, merging results into `state`; returns the error, if any"""
        workflow = execution.workflow
        nodes = {n.get("id"): n for n in workflow.nodes or []}
        connections = workflow.connections or []

        triggers = [n for n in nodes.values() if n.get("type") == NodeType.TRIGGER.value]
        if len(triggers) != 1:
            return f"Workflow needs exactly one TRIGGER node, found {len(triggers)}"

        node = triggers[0]
        steps = 0
        while node is not None:
            if steps >= self.max_steps:
                return f"Exceeded maximum of {self.max_steps} steps"

            steps += 1
            execution.current_node_id = node.get("id")
            execution.steps_executed = steps
            self.db.commit()

            try:
                result = self._run_node(execution, workflow, node, state)
            except NodeFailure as e:
                return str(e)

            state.update(result)
            node = self._next_node(node, result, nodes, connections)

        return None

    # ------------------------------------------------------------------
    # Walking
    # ------------------------------------------------------------------

    def _finish(self, execution: WorkflowExecution, state: Dict[str, Any], error: Optional[str] = None) -> WorkflowExecution:
        execution.data = dict(state)
        execution.completed_at = utcnow()
        if error:
            execution.status = ExecutionStatus.FAILED.value
            execution.error = error
            logger.warning(f"Workflow execution {execution.id} failed: {error}")
        else:
            execution.status = ExecutionStatus.COMPLETED.value
            logger.info(f"Workflow execution {execution.id} completed in {execution.steps_executed} steps")
        self.db.commit()
        self.db.refresh(execution)
        return execution

    @staticmethod
    def _next_node(node, result, nodes, connections) -> Optional[Dict[str, Any]]:
        outgoing = [c for c in connections if c.get("from_node_id") == node["id"]]
        if not outgoing:
            return None

        if node.get("type") == NodeType.CONDITION.value:
            wanted = "true" if result.get("condition_result") else "false"
            chosen = next((c for c in outgoing if str(c.get("condition")).lower() == wanted), None)
            if chosen is None:
                chosen = next((c for c in outgoing if c.get("condition") is None), None)
        else:
            chosen = outgoing[0]

        return nodes.get(chosen["to_node_id"]) if chosen else None

    def _log(self, execution, node, status: LogStatus, message: str, data: Dict[str, Any], started: float) -> None:
        self.db.add(WorkflowLog(
            execution_id=execution.id,
            node_id=node["id"],
            node_name=node.get("name"),
            node_type=node.get("type"),
            status=status.value,
            message=message,
            data=data,
            duration_ms=int((time.perf_counter() - started) * 1000),
        ))
        self.db.commit()

    def _run_node(self, execution, workflow, node, state) -> Dict[str, Any]:
        config = node.get("config") or {}
        attempts = 1 + max(0, min(MAX_RETRIES, int(config.get("retries", 0) or 0)))
        handler = self.handlers.get(node.get("type"))

        last_error = f"Unknown node type {node.get('type')}"
        for attempt in range(1, attempts + 1):
            started = time.perf_counter()
            if handler is None:
                self._log(execution, node, LogStatus.FAILED, last_error, {}, started)
                break
            try:
                result = handler(workflow, config, state)
            except NODE_ERRORS as e:
                self.db.rollback()
                last_error = getattr(e, "message", None) or str(e)
                self._log(
                    execution, node, LogStatus.FAILED,
                    f"Attempt {attempt}/{attempts}: {last_error}", {"attempt": attempt}, started,
                )
                continue

            skipped = result.get("email_sent") is False or result.get("sms_sent") is False
            status = LogStatus.SKIPPED if skipped else LogStatus.SUCCESS
            self._log(execution, node, status, result.pop("_message", f"{node.get('type')} node done"), result, started)
            return result

        raise NodeFailure(f"Node {node['id']} ({node.get('name') or node.get('type')}) failed: {last_error}")

    # ------------------------------------------------------------------
    # Node handlers
    # ------------------------------------------------------------------

    @staticmethod
    def _value(value: Any, state: Dict[str, Any]) -> Any:
        """A config value with {{placeholders}} resolved; a lone placeholder keeps its type"""
        if not isinstance(value, str):
            return value
        match = PLACEHOLDER_PATTERN.fullmatch(value.strip())
        if match:
            return resolve_path(state, match.group(1))
        return render_template(value, state)

    def _param(self, config: Dict[str, Any], state: Dict[str, Any], key: str, default: Any = None) -> Any:
        if key in config:
            return self._value(config[key], state)
        return state.get(key, default)

    def _run_trigger(self, workflow, config, state) -> Dict[str, Any]:
        return {"_message": "Triggered"}

    def _run_action(self, workflow, config, state) -> Dict[str, Any]:
        action = config.get("action")
        if action == ActionType.CREATE_ORDER.value:
            return self._create_order(workflow, config, state)
        if action == ActionType.UPDATE_INVENTORY.value:
            return self._update_inventory(workflow, config, state)
        if action == ActionType.UPDATE_CUSTOMER.value:
            return self._update_customer(config, state)
        if action == ActionType.SEND_NOTIFICATION.value:
            notification = {
                "message": render_template(config.get("message", ""), state),
                "recipient": self._param(config, state, "recipient"),
            }
            return {"notification": notification, "_message": "Notification recorded"}
        if action == ActionType.ASSIGN_TASK.value:
            task = {
                "title": render_template(config.get("title", "") or config.get("task", ""), state),
                "assignee": self._param(config, state, "assignee"),
            }
            return {"task": task, "_message": f"Task assigned to {task['assignee']}"}
        raise WorkflowError(f"Unknown action {action}")

    def _create_order(self, workflow, config, state) -> Dict[str, Any]:
        items = self._param(config, state, "items") or []
        data = OrderCreate(
            customer_id=self._param(config, state, "customer_id"),
            items=items,
            notes=self._param(config, state, "notes") or f"Created by workflow {workflow.name}",
            source="workflow",
        )
        order = OrderService(self.db, self.organization_id).create_order(data, commit=False)
        return {
            "order_id": order.id,
            "order_number": order.order_number,
            "order_total": float(order.total),
            "_message": f"Order {order.order_number} created",
        }

    def _update_inventory(self, workflow, config, state) -> Dict[str, Any]:
        product_id = self._param(config, state, "product_id")
        quantity = int(self._param(config, state, "quantity", 0))
        operation = str(self._param(config, state, "operation", "ADD")).upper()
        if quantity <= 0:
            raise WorkflowError("quantity must be a positive number")
        if operation not in ("ADD", "SUBTRACT"):
            raise WorkflowError(f"Unknown inventory operation {operation}")

        service = ProductService(self.db, self.organization_id)
        product = service.get_product(product_id)
        change = quantity if operation == "ADD" else -quantity
        service.apply_stock_change(
            product, change, MovementType.ADJUSTMENT,
            reason=f"Workflow {workflow.name}", created_by="workflow",
        )
        return {
            "product_id": product.id,
            "stock_quantity": product.stock_quantity,
            "_message": f"Stock of {product.sku} changed by {change}",
        }

    def _update_customer(self, config, state) -> Dict[str, Any]:
        customer = CustomerRepository(self.db, self.organization_id).get(self._param(config, state, "customer_id"))
        updates = self._param(config, state, "updates") or {}
        if not isinstance(updates, dict):
            raise WorkflowError("updates must be an object")

        applied = []
        for field in CUSTOMER_UPDATABLE_FIELDS:
            if field in updates:
                setattr(customer, field, self._value(updates[field], state))
                applied.append(field)
        self.db.flush()
        return {
            "customer_id": customer.id,
            "updated_fields": applied,
            "_message": f"Customer {customer.id} updated: {', '.join(applied) or 'nothing'}",
        }

    def _run_condition(self, workflow, config, state) -> Dict[str, Any]:
        result = evaluate_condition(config.get("condition", ""), state)
        return {"condition_result": result, "_message": f"Condition evaluated to {result}"}

    def _run_delay(self, workflow, config, state) -> Dict[str, Any]:
        if "delay_seconds" in config:
            seconds = float(config["delay_seconds"])
        else:
            seconds = float(config.get("delay_ms", 0)) / 1000
        seconds = max(0.0, min(seconds, settings.WORKFLOW_MAX_DELAY_SECONDS))
        time.sleep(seconds)
        return {"_message": f"Waited {seconds:.2f}s"}

    def _run_webhook(self, workflow, config, state) -> Dict[str, Any]:
        url = self._value(config.get("url"), state)
        method = str(config.get("method") or "POST").upper()
        response = httpx.request(
            method,
            url,
            json=None if method == "GET" else state,
            headers=config.get("headers") or {},
            timeout=settings.INTEGRATION_TIMEOUT_SECONDS,
        )
        if not response.is_success:
            raise WorkflowError(f"Webhook {method} {url} returned {response.status_code}")

        result: Dict[str, Any] = {"webhook_status": response.status_code, "_message": f"{method} {url} -> {response.status_code}"}
        try:
            result["webhook_response"] = response.json()
        except ValueError:
            pass
        return result

    def _recipients(self, config, state, fallback_key: str) -> List[str]:
        recipients = self._value(config.get("recipients"), state) or state.get(fallback_key)
        if isinstance(recipients, str):
            recipients = [recipients]
        recipients = [r for r in (recipients or []) if r]
        if not recipients:
            raise WorkflowError(f"No recipients (set config.recipients or '{fallback_key}' in the data)")
        return recipients

    def _run_email(self, workflow, config, state) -> Dict[str, Any]:
        recipients = self._recipients(config, state, "email")
        try:
            connector = IntegrationService(self.db, self.organization_id).get_connector("sendgrid")
        except IntegrationError as e:
            return {"email_sent": False, "email_error": e.message, "_message": f"Email skipped: {e.message}"}

        subject = render_template(config.get("subject", ""), state)
        body = render_template(config.get("message", ""), state)
        for recipient in recipients:
            connector.send_email(recipient, subject, body, html=bool(config.get("html", False)))
        return {"email_sent": True, "email_recipients": recipients, "_message": f"Email sent to {len(recipients)} recipient(s)"}

    def _run_sms(self, workflow, config, state) -> Dict[str, Any]:
        recipients = self._recipients(config, state, "phone")
        try:
            connector = IntegrationService(self.db, self.organization_id).get_connector("twilio")
        except IntegrationError as e:
            return {"sms_sent": False, "sms_error": e.message, "_message": f"SMS skipped: {e.message}"}

        body = render_template(config.get("message", ""), state)
        for recipient in recipients:
            connector.send_sms(recipient, body)
        return {"sms_sent": True, "sms_recipients": recipients, "_message": f"SMS sent to {len(recipients)} recipient(s)"}
