"""
Tests for the workflow engine and WorkflowService

Webhook calls and delays are patched; everything else runs against the
seeded in-memory database.
"""
from unittest.mock import MagicMock, patch

import httpx
import pytest

from smartstore.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError, WorkflowError
from smartstore.domain.workflow import (
    WorkflowConnection,
    WorkflowCreate,
    WorkflowNode,
    WorkflowTemplateCreate,
    WorkflowUpdate,
)
from smartstore.models import Workflow, WorkflowTemplate
from smartstore.services.workflow_engine import WorkflowEngine, validate_definition
from smartstore.services.workflow_service import WorkflowService


def chain(*nodes, connections=None, name="Test flow", triggers=None):
    """WorkflowCreate for a TRIGGER followed by `nodes` in a straight line"""
    all_nodes = [WorkflowNode(id="start", type="TRIGGER", name="Start")] + list(nodes)
    if connections is None:
        connections = [
            WorkflowConnection(from_node_id=a.id, to_node_id=b.id)
            for a, b in zip(all_nodes, all_nodes[1:])
        ]
    return WorkflowCreate(name=name, nodes=all_nodes, connections=connections, triggers=triggers or [])


@pytest.fixture
def workflows(db, demo_org):
    return WorkflowService(db, demo_org.id)


@pytest.fixture
def sample(workflows):
    """The seeded 'High value order alert' workflow"""
    items, _ = workflows.list_workflows()
    return next(w for w in items if w.name == "High value order alert")


class TestValidateDefinition:
    """Test graph validation before storage"""

    def test_valid_graph(self):
        validate_definition(
            [{"id": "t", "type": "TRIGGER"}, {"id": "c", "type": "CONDITION", "config": {"condition": "x > 1"}}],
            [{"from_node_id": "t", "to_node_id": "c"}],
        )

    def test_collects_every_problem(self):
        nodes = [
            {"id": "a", "type": "ACTION", "config": {"action": "LAUNCH_ROCKET"}},
            {"id": "a", "type": "BOGUS"},
            {"id": "c", "type": "CONDITION", "config": {}},
            {"id": "w", "type": "WEBHOOK", "config": {}},
        ]
        connections = [{"from_node_id": "c", "to_node_id": "ghost", "condition": "maybe"}]

        with pytest.raises(ValidationError) as exc:
            validate_definition(nodes, connections)

        errors = exc.value.details["errors"]
        assert "Duplicate node ids: a" in errors
        assert "Node a: unknown action LAUNCH_ROCKET" in errors
        assert "Node a: unknown type BOGUS" in errors
        assert "Node c: condition is required" in errors
        assert "Node w: url is required" in errors
        assert any("unknown node ghost" in e for e in errors)
        assert "Connection from c: condition must be 'true' or 'false'" in errors
        assert "Workflow needs exactly one TRIGGER node, found 0" in errors

    def test_unsafe_condition_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            validate_definition(
                [{"id": "t", "type": "TRIGGER"}, {"id": "c", "type": "CONDITION", "config": {"condition": "__import__('os')"}}],
                [],
            )

        assert exc.value.details["errors"][0].startswith("Node c:")

    def test_trigger_cannot_be_a_target(self):
        with pytest.raises(ValidationError) as exc:
            validate_definition(
                [{"id": "t", "type": "TRIGGER"}, {"id": "d", "type": "DELAY"}],
                [{"from_node_id": "t", "to_node_id": "d"}, {"from_node_id": "d", "to_node_id": "t"}],
            )

        assert exc.value.details["errors"] == ["TRIGGER node cannot have incoming connections"]

    def test_missing_and_non_string_ids(self):
        with pytest.raises(ValidationError) as exc:
            validate_definition([{"id": 1, "type": "TRIGGER"}, {"id": 1, "type": "DELAY"}, {"type": "DELAY"}], [])

        errors = exc.value.details["errors"]
        assert "Node #1: id must be a non-empty string" in errors
        assert "Node #3: id must be a non-empty string" in errors
        assert "Duplicate node ids: 1" in errors

    @pytest.mark.parametrize("retries", ["abc", -1, 4, 1.5, True])
    def test_retries_must_be_small_int(self, retries):
        with pytest.raises(ValidationError) as exc:
            validate_definition([{"id": "t", "type": "TRIGGER", "config": {"retries": retries}}], [])

        assert exc.value.details["errors"] == ["Node t: retries must be an integer from 0 to 3"]


class TestEngineBranching:
    """Test the seeded workflow end to end"""

    def test_high_value_order_notifies(self, workflows, sample):
        execution = workflows.execute(sample.id, {"order_total": 150, "order_number": "ORD-9"})

        assert execution.status == "COMPLETED"
        assert execution.steps_executed == 3
        assert execution.current_node_id == "notify"
        assert execution.data["notification"]["message"] == "Order ORD-9 for 150"
        assert [log.node_id for log in execution.logs] == ["start", "check", "notify"]
        assert {log.status for log in execution.logs} == {"SUCCESS"}

    def test_low_value_order_stops_at_condition(self, workflows, sample):
        execution = workflows.execute(sample.id, {"order_total": 50, "order_number": "ORD-10"})

        assert execution.status == "COMPLETED"
        assert execution.steps_executed == 2
        assert execution.data["condition_result"] is False
        assert "notification" not in execution.data

    def test_false_branch(self, workflows):
        workflow = workflows.create_workflow(chain(
            WorkflowNode(id="check", type="CONDITION", config={"condition": "'{{tier}}' == 'gold'"}),
            WorkflowNode(id="vip", type="ACTION", config={"action": "ASSIGN_TASK", "title": "Call VIP", "assignee": "sales"}),
            WorkflowNode(id="std", type="ACTION", config={"action": "SEND_NOTIFICATION", "message": "Regular {{tier}}"}),
            connections=[
                WorkflowConnection(from_node_id="start", to_node_id="check"),
                WorkflowConnection(from_node_id="check", to_node_id="vip", condition="true"),
                WorkflowConnection(from_node_id="check", to_node_id="std", condition="false"),
            ],
        ))

        execution = workflows.execute(workflow.id, {"tier": "silver"})

        assert execution.current_node_id == "std"
        assert execution.data["notification"]["message"] == "Regular silver"
        assert "task" not in execution.data

    def test_inactive_workflow_cannot_run(self, workflows, sample):
        workflows.update_workflow(sample.id, WorkflowUpdate(is_active=False))

        with pytest.raises(WorkflowError):
            workflows.execute(sample.id, {})

    def test_max_steps_guard(self, workflows, db, demo_org):
        notify = {"action": "SEND_NOTIFICATION", "message": "ping"}
        workflow = workflows.create_workflow(chain(
            WorkflowNode(id="a", type="ACTION", config=notify),
            WorkflowNode(id="b", type="ACTION", config=notify),
            connections=[
                WorkflowConnection(from_node_id="start", to_node_id="a"),
                WorkflowConnection(from_node_id="a", to_node_id="b"),
                WorkflowConnection(from_node_id="b", to_node_id="a"),
            ],
        ))

        execution = WorkflowEngine(db, demo_org.id, max_steps=5).execute(workflow.id)

        assert execution.status == "FAILED"
        assert execution.error == "Exceeded maximum of 5 steps"
        assert execution.steps_executed == 5

    def test_unexpected_error_still_finishes_execution(self, workflows, db, demo_org):
        # Stored before definitions were checked, so it never went through validate_definition
        workflow = Workflow(
            organization_id=demo_org.id,
            name="Legacy flow",
            nodes=[{"id": "start", "type": "TRIGGER", "config": {"retries": "abc"}}],
            connections=[],
            triggers=[],
            is_active=True,
        )
        db.add(workflow)
        db.commit()

        execution = workflows.execute(workflow.id, {})

        assert execution.status == "FAILED"
        assert execution.error.startswith("Unexpected error")
        assert execution.completed_at is not None


class TestNodeHandlers:
    """Test individual node types"""

    def test_webhook_retries_then_fails(self, workflows):
        workflow = workflows.create_workflow(chain(
            WorkflowNode(id="hook", type="WEBHOOK", name="Call partner", config={"url": "https://partner.example/hook", "retries": 2}),
        ))

        with patch("smartstore.services.workflow_engine.httpx.request", side_effect=httpx.ConnectError("refused")) as mock_request:
            execution = workflows.execute(workflow.id, {"order_id": 1})

        assert mock_request.call_count == 3
        assert execution.status == "FAILED"
        assert execution.error.startswith("Node hook (Call partner) failed")
        hook_logs = [log for log in execution.logs if log.node_id == "hook"]
        assert [log.status for log in hook_logs] == ["FAILED"] * 3
        assert hook_logs[-1].message.startswith("Attempt 3/3")

    def test_webhook_posts_state(self, workflows):
        workflow = workflows.create_workflow(chain(
            WorkflowNode(id="hook", type="WEBHOOK", config={"url": "https://partner.example/{{order_id}}"}),
        ))
        response = MagicMock(is_success=True, status_code=200)
        response.json.return_value = {"received": True}

        with patch("smartstore.services.workflow_engine.httpx.request", return_value=response) as mock_request:
            execution = workflows.execute(workflow.id, {"order_id": 7})

        method, url = mock_request.call_args.args
        assert (method, url) == ("POST", "https://partner.example/7")
        assert mock_request.call_args.kwargs["json"] == {"order_id": 7}
        assert execution.data["webhook_response"] == {"received": True}

    def test_webhook_error_status(self, workflows):
        workflow = workflows.create_workflow(chain(
            WorkflowNode(id="hook", type="WEBHOOK", config={"url": "https://partner.example/hook", "method": "get"}),
        ))

        with patch("smartstore.services.workflow_engine.httpx.request", return_value=MagicMock(is_success=False, status_code=503)):
            execution = workflows.execute(workflow.id)

        assert execution.status == "FAILED"
        assert "returned 503" in execution.error

    def test_delay_is_capped(self, workflows):
        workflow = workflows.create_workflow(chain(WorkflowNode(id="wait", type="DELAY", config={"delay_seconds": 3600})))

        with patch("smartstore.services.workflow_engine.time.sleep") as mock_sleep:
            execution = workflows.execute(workflow.id)

        mock_sleep.assert_called_once_with(1.0)
        assert execution.status == "COMPLETED"

    def test_email_without_integration_is_skipped(self, workflows):
        workflow = workflows.create_workflow(chain(
            WorkflowNode(id="mail", type="EMAIL", config={"subject": "Hi", "message": "Thanks {{name}}"}),
        ))

        execution = workflows.execute(workflow.id, {"email": "ana@example.com", "name": "Ana"})

        assert execution.status == "COMPLETED"
        assert execution.logs[-1].status == "SKIPPED"
        assert execution.data["email_sent"] is False

    def test_sms_without_recipients_fails(self, workflows):
        workflow = workflows.create_workflow(chain(WorkflowNode(id="text", type="SMS", config={"message": "Hi"})))

        execution = workflows.execute(workflow.id)

        assert execution.status == "FAILED"
        assert "No recipients" in execution.error

    def test_update_inventory(self, workflows, product):
        workflow = workflows.create_workflow(chain(WorkflowNode(
            id="restock",
            type="ACTION",
            config={"action": "UPDATE_INVENTORY", "product_id": "{{product_id}}", "quantity": 7, "operation": "add"},
        )))
        lamp = product("HOME-002")

        execution = workflows.execute(workflow.id, {"product_id": lamp.id})

        assert execution.status == "COMPLETED"
        assert execution.data["stock_quantity"] == 10
        assert product("HOME-002").stock_quantity == 10

    def test_inventory_underflow_fails_without_changes(self, workflows, product):
        workflow = workflows.create_workflow(chain(WorkflowNode(
            id="pick",
            type="ACTION",
            config={"action": "UPDATE_INVENTORY", "product_id": "{{product_id}}", "quantity": 50, "operation": "SUBTRACT"},
        )))

        execution = workflows.execute(workflow.id, {"product_id": product("HOME-002").id})

        assert execution.status == "FAILED"
        assert "Insufficient stock" in execution.error
        assert product("HOME-002").stock_quantity == 3

    def test_create_order(self, workflows, product, customer):
        workflow = workflows.create_workflow(chain(WorkflowNode(
            id="reorder",
            type="ACTION",
            config={"action": "CREATE_ORDER", "customer_id": "{{customer_id}}", "items": "{{items}}"},
        )))
        carla = customer("carla@example.com")

        execution = workflows.execute(workflow.id, {
            "customer_id": carla.id,
            "items": [{"product_id": product("HOME-001").id, "quantity": 2}],
        })

        assert execution.status == "COMPLETED"
        assert execution.data["order_total"] == 25.0
        assert product("HOME-001").stock_quantity == 74

    def test_update_customer_only_touches_allowed_fields(self, workflows, customer):
        workflow = workflows.create_workflow(chain(WorkflowNode(
            id="move",
            type="ACTION",
            config={
                "action": "UPDATE_CUSTOMER",
                "customer_id": "{{customer_id}}",
                "updates": {"city": "{{new_city}}", "total_spent": 0},
            },
        )))
        bruno = customer("bruno@example.com")

        execution = workflows.execute(workflow.id, {"customer_id": bruno.id, "new_city": "Arica"})

        assert execution.data["updated_fields"] == ["city"]
        assert customer("bruno@example.com").city == "Arica"


class TestWorkflowService:
    """Test definitions, events, analytics and templates"""

    def test_invalid_definition_is_not_stored(self, workflows):
        with pytest.raises(ValidationError):
            workflows.create_workflow(WorkflowCreate(name="Broken", nodes=[WorkflowNode(id="x", type="DELAY")]))

        _, total = workflows.list_workflows()
        assert total == 1

    def test_graph_change_bumps_version(self, workflows, sample):
        renamed = workflows.update_workflow(sample.id, WorkflowUpdate(name="Big order alert"))
        assert renamed.version == 1

        nodes = [WorkflowNode(**n) for n in sample.nodes]
        nodes[1].config = {"condition": "{{order_total}} > 500"}
        updated = workflows.update_workflow(sample.id, WorkflowUpdate(nodes=nodes))
        assert updated.version == 2

    def test_trigger_event(self, workflows, sample):
        executions = workflows.trigger_event("order.created", {"order_total": 300, "order_number": "ORD-11"})

        assert [e.workflow_id for e in executions] == [sample.id]
        assert workflows.trigger_event("order.shipped", {}) == []

    def test_analytics(self, workflows, sample):
        workflows.execute(sample.id, {"order_total": 150, "order_number": "A"})
        workflows.execute(sample.id, {"order_total": 150, "order_number": "B"})
        # Comparing None with a number fails the condition node
        workflows.execute(sample.id, {})

        analytics = workflows.get_analytics(sample.id)

        assert analytics["total_executions"] == 3
        assert analytics["successful_executions"] == 2
        assert analytics["failed_executions"] == 1
        assert analytics["success_rate"] == 66.67

    def test_list_executions_filters_by_status(self, workflows, sample):
        workflows.execute(sample.id, {"order_total": 150})
        workflows.execute(sample.id, {})

        failed, total = workflows.list_executions(sample.id, status="FAILED")

        assert total == 1
        assert failed[0].status == "FAILED"

    def test_templates(self, workflows, sample):
        template = workflows.create_template(WorkflowTemplateCreate(
            name="Order alert",
            category="orders",
            definition={"nodes": sample.nodes, "connections": sample.connections, "triggers": ["order.created"]},
        ))

        workflow = workflows.create_from_template(template.id, name="My alert")

        assert workflow.name == "My alert"
        assert workflow.triggers == ["order.created"]
        assert [t.usage_count for t in workflows.list_templates("orders")] == [1]

    def test_invalid_template_definition(self, workflows):
        with pytest.raises(ValidationError):
            workflows.create_template(WorkflowTemplateCreate(name="Empty", definition={"nodes": []}))

    def test_template_node_without_id_is_rejected(self, workflows):
        with pytest.raises(ValidationError) as exc:
            workflows.create_template(WorkflowTemplateCreate(
                name="No ids",
                definition={"nodes": [{"type": "TRIGGER"}]},
            ))

        assert any(e.startswith("nodes.0.id") for e in exc.value.details["errors"])

    def test_stored_bad_template_is_not_instantiated(self, workflows, db, demo_org):
        template = WorkflowTemplate(
            organization_id=demo_org.id,
            name="Hand edited",
            definition={"nodes": [{"type": "TRIGGER"}]},
            tags=[],
            is_public=False,
            usage_count=0,
        )
        db.add(template)
        db.commit()

        with pytest.raises(ValidationError):
            workflows.create_from_template(template.id)

        _, total = workflows.list_workflows()
        assert total == 1

    def test_private_templates_stay_with_their_owner(self, workflows, sample, db, other_org):
        template = workflows.create_template(WorkflowTemplateCreate(
            name="Our secret flow",
            definition={"nodes": sample.nodes, "connections": sample.connections},
        ))
        others = WorkflowService(db, other_org.id)

        assert template.is_public is False
        assert others.list_templates() == []
        with pytest.raises(NotFoundError):
            others.create_from_template(template.id)

    def test_publishing_needs_permission(self, workflows, sample, db, other_org):
        data = WorkflowTemplateCreate(
            name="Shared flow",
            definition={"nodes": sample.nodes, "connections": sample.connections},
            is_public=True,
        )

        with pytest.raises(PermissionDeniedError):
            workflows.create_template(data)

        template = workflows.create_template(data, can_publish=True)
        others = WorkflowService(db, other_org.id)
        assert [t.id for t in others.list_templates()] == [template.id]
        assert others.create_from_template(template.id).organization_id == other_org.id


class TestWorkflowsApi:
    """Test /api/v1/workflows"""

    def test_execute_returns_logs(self, client, auth_headers):
        headers = auth_headers("admin@demo.store")
        workflow_id = client.get("/api/v1/workflows", headers=headers).json()["data"][0]["id"]

        response = client.post(
            f"/api/v1/workflows/{workflow_id}/execute",
            headers=headers,
            json={"trigger_data": {"order_total": 120, "order_number": "ORD-API"}},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "COMPLETED"
        assert len(data["logs"]) == 3

    def test_invalid_definition_is_400(self, client, auth_headers):
        response = client.post(
            "/api/v1/workflows",
            headers=auth_headers("admin@demo.store"),
            json={"name": "Broken", "nodes": [{"id": "x", "type": "DELAY"}]},
        )

        assert response.status_code == 400
        assert response.json()["details"]["errors"]

    def test_only_super_admin_publishes_templates(self, client, auth_headers, demo_org):
        payload = {
            "name": "Shared",
            "is_public": True,
            "definition": {"nodes": [{"id": "start", "type": "TRIGGER"}]},
        }

        denied = client.post("/api/v1/workflows/templates", headers=auth_headers("admin@demo.store"), json=payload)
        published = client.post(
            f"/api/v1/workflows/templates?organization_id={demo_org.id}",
            headers=auth_headers("superadmin@smartstore.dev"),
            json=payload,
        )

        assert denied.status_code == 403
        assert published.status_code == 201
        assert published.json()["data"]["is_public"] is True

    def test_staff_cannot_manage_workflows(self, client, auth_headers):
        response = client.get("/api/v1/workflows", headers=auth_headers("marketing@demo.store"))

        assert response.status_code == 403
