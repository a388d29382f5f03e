import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, patch, MagicMock

from automation_engine.main import app
from automation_engine.adapters.primary.api.dependencies import (
    get_activate_workflow_use_case,
    get_cancel_run_use_case,
    get_create_workflow_use_case,
    get_fire_workflow_event_use_case,
    get_manual_run_use_case,
    get_run_status_use_case,
    get_validate_workflow_use_case,
    get_workflow_use_case,
)
from automation_engine.application.workflow.use_cases.manage_workflow import ValidateWorkflowUseCase
from automation_engine.domain.workflow.entities.run import Event, WorkflowRun
from automation_engine.domain.workflow.entities.workflow import (
    Edge,
    Node,
    WorkflowDefinition,
    WorkflowStatus,
)
from automation_engine.domain.workflow.exceptions import (
    InvalidStatusTransitionError,
    RunNotFoundError,
    WorkflowNotActiveError,
    WorkflowNotFoundError,
    WorkflowValidationError,
)

NODES = [
    {"id": "t", "type": "trigger", "subtype": "new_follower", "config": {}},
    {"id": "mail", "type": "action", "subtype": "send_email", "config": {"to": "{{fan.email}}", "subject": "Hi"}},
]
EDGES = [{"id": "e1", "source": "t", "target": "mail"}]


def sample_workflow(status=WorkflowStatus.DRAFT):
    return WorkflowDefinition(
        id="wf-123",
        owner_id="7",
        name="Welcome",
        status=status,
        nodes=[Node.from_dict(n) for n in NODES],
        edges=[Edge.from_dict(e) for e in EDGES],
    )


class TestApiRoutes:
    @pytest.fixture
    def mock_create(self):
        return AsyncMock()

    @pytest.fixture
    def mock_get(self):
        return AsyncMock()

    @pytest.fixture
    def mock_activate(self):
        return AsyncMock()

    @pytest.fixture
    def mock_manual_run(self):
        return AsyncMock()

    @pytest.fixture
    def mock_fire_event(self):
        return AsyncMock()

    @pytest.fixture
    def mock_run_status(self):
        return AsyncMock()

    @pytest.fixture
    def mock_cancel(self):
        return AsyncMock()

    @pytest.fixture
    def client(
        self,
        mock_create,
        mock_get,
        mock_activate,
        mock_manual_run,
        mock_fire_event,
        mock_run_status,
        mock_cancel,
    ):
        app.dependency_overrides[get_create_workflow_use_case] = lambda: mock_create
        app.dependency_overrides[get_workflow_use_case] = lambda: mock_get
        app.dependency_overrides[get_validate_workflow_use_case] = lambda: ValidateWorkflowUseCase()
        app.dependency_overrides[get_activate_workflow_use_case] = lambda: mock_activate
        app.dependency_overrides[get_manual_run_use_case] = lambda: mock_manual_run
        app.dependency_overrides[get_fire_workflow_event_use_case] = lambda: mock_fire_event
        app.dependency_overrides[get_run_status_use_case] = lambda: mock_run_status
        app.dependency_overrides[get_cancel_run_use_case] = lambda: mock_cancel

        # Mock the infrastructure to avoid connection errors
        try:
            with patch("automation_engine.main.redis_client", AsyncMock()), \
                 patch("automation_engine.main.engine", AsyncMock()), \
                 patch("automation_engine.main.webhook_caller", AsyncMock()), \
                 patch("automation_engine.adapters.primary.api.routes.health.redis_client", AsyncMock(ping=AsyncMock())), \
                 patch("automation_engine.adapters.primary.api.routes.health.engine", MagicMock()):

                import automation_engine.adapters.primary.api.routes.health as health_mod
                mock_engine = health_mod.engine
                mock_conn = AsyncMock()
                mock_cm = AsyncMock()
                mock_cm.__aenter__.return_value = mock_conn
                mock_engine.connect.return_value = mock_cm

                with TestClient(app) as c:
                    yield c
        finally:
            app.dependency_overrides = {}

    def test_create_workflow(self, client, mock_create):
        mock_create.execute.return_value = sample_workflow()

        response = client.post(
            "/api/v1/workflows",
            json={"owner_id": "7", "name": "Welcome", "nodes": NODES, "edges": EDGES},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["id"] == "wf-123"
        assert body["status"] == "draft"
        assert body["nodes"][1]["config"]["to"] == "{{fan.email}}"
        assert mock_create.execute.await_args.kwargs["owner_id"] == "7"

    def test_create_workflow_rejects_unknown_node_type(self, client):
        nodes = [{"id": "x", "type": "teleport", "subtype": "x", "config": {}}]
        response = client.post("/api/v1/workflows", json={"owner_id": "7", "name": "Bad", "nodes": nodes})
        assert response.status_code == 422

    def test_validate_workflow(self, client):
        response = client.post("/api/v1/workflows/validate", json={"nodes": NODES, "edges": []})

        assert response.status_code == 200
        assert response.json() == {"valid": False, "issues": ["Connect your nodes with arrows."]}

    def test_get_workflow_not_found(self, client, mock_get):
        mock_get.execute.side_effect = WorkflowNotFoundError("missing")

        response = client.get("/api/v1/workflows/missing")

        assert response.status_code == 404
        assert response.json()["error"]["error_code"] == "WORKFLOW_NOT_FOUND"

    def test_activate_invalid_workflow_returns_issues(self, client, mock_activate):
        mock_activate.execute.side_effect = WorkflowValidationError(["Add at least one Action node."])

        response = client.post("/api/v1/workflows/wf-123/activate")

        assert response.status_code == 422
        assert response.json()["error"]["context"]["issues"] == ["Add at least one Action node."]

    def test_activate_archived_workflow_conflicts(self, client, mock_activate):
        mock_activate.execute.side_effect = InvalidStatusTransitionError("wf-123", "archived", "active")

        response = client.post("/api/v1/workflows/wf-123/activate")

        assert response.status_code == 409

    def test_manual_run(self, client, mock_manual_run):
        mock_manual_run.execute.return_value = "run-1"

        response = client.post("/api/v1/workflows/wf-123/run", json={"data": {"fan": {"email": "x@y.com"}}})

        assert response.status_code == 202
        assert response.json()["run_id"] == "run-1"
        mock_manual_run.execute.assert_awaited_once_with("wf-123", {"fan": {"email": "x@y.com"}})

    def test_manual_run_inactive_workflow(self, client, mock_manual_run):
        mock_manual_run.execute.side_effect = WorkflowNotActiveError("wf-123", "paused")

        response = client.post("/api/v1/workflows/wf-123/run", json={})

        assert response.status_code == 409

    def test_fire_event(self, client, mock_fire_event):
        mock_fire_event.execute.return_value = ["run-1", "run-2"]

        response = client.post(
            "/api/v1/events",
            json={"eventType": "tip_received", "occurredFor": "7", "data": {"amount": 5}},
        )

        assert response.status_code == 200
        assert response.json() == {"run_ids": ["run-1", "run-2"]}
        event = mock_fire_event.execute.await_args.args[0]
        assert event == Event(event_type="tip_received", occurred_for="7", data={"amount": 5})

    def test_fire_event_accepts_numeric_actor_id(self, client, mock_fire_event):
        mock_fire_event.execute.return_value = ["run-1"]

        response = client.post(
            "/api/v1/events",
            json={"eventType": "new_follower", "occurredFor": 7, "data": {"followerId": 42}},
        )

        assert response.status_code == 200
        event = mock_fire_event.execute.await_args.args[0]
        assert event == Event(event_type="new_follower", occurred_for="7", data={"followerId": 42})

    def test_fire_event_requires_type(self, client):
        response = client.post("/api/v1/events", json={"occurredFor": "7"})
        assert response.status_code == 422

    def test_get_run(self, client, mock_run_status):
        run = WorkflowRun(
            id="run-1",
            workflow_id="wf-123",
            owner_id="7",
            triggering_event=Event(event_type="new_follower", occurred_for="7", data={"followerId": 1}),
        )
        mock_run_status.execute.return_value = run

        response = client.get("/api/v1/runs/run-1")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "running"
        assert body["triggering_event"]["eventType"] == "new_follower"
        assert body["context"]["followerId"] == 1

    def test_get_run_not_found(self, client, mock_run_status):
        mock_run_status.execute.side_effect = RunNotFoundError("missing")

        response = client.get("/api/v1/runs/missing")

        assert response.status_code == 404

    def test_cancel_run(self, client, mock_cancel):
        run = WorkflowRun(
            id="run-1",
            workflow_id="wf-123",
            owner_id="7",
            triggering_event=Event(event_type="new_follower", occurred_for="7"),
        )
        run.cancel()
        mock_cancel.execute.return_value = run

        response = client.delete("/api/v1/runs/run-1")

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

    def test_health_check(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["dependencies"] == {"redis": "healthy", "postgres": "healthy"}
        assert response.json()["open_webhook_circuits"] == []

    def test_health_check_degraded_when_redis_down(self, client):
        failing = AsyncMock(ping=AsyncMock(side_effect=ConnectionError("refused")))
        with patch("automation_engine.adapters.primary.api.routes.health.redis_client", failing):
            response = client.get("/health")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "degraded"
        assert body["dependencies"] == {"redis": "unhealthy", "postgres": "healthy"}

    def test_metrics_endpoint(self, client):
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
